import pytest

from uiccat import apdu


def test_get_challenge_4_bytes_matches_known_command():
    assert apdu.get_challenge_4_bytes() == "0084000004"


def test_get_challenge_uses_requested_length():
    assert apdu.get_challenge(4) == apdu.get_challenge_4_bytes()
    assert apdu.get_challenge(16).startswith("00840000")


def test_select_crypto_app_carries_aid_and_length():
    cmd = apdu.select_crypto_app()
    assert cmd.startswith("00A4040C")
    assert cmd.endswith(apdu.CRYPTO_AID)
    assert int(cmd[8:10], 16) == len(apdu.CRYPTO_AID) // 2


def test_select_aid_rejects_odd_hex():
    with pytest.raises(ValueError):
        apdu.select_aid("ABC")


def test_fixed_commands():
    assert apdu.select_first_file_cur_dir_fcp() == "00A40004"
    assert apdu.select_next_file_cur_dir_fcp() == "00A40006"
    assert apdu.set_lcs_use() == "00440000"
    assert apdu.delete_current_file() == "00E40000"


def test_select_fid_no_rsp_example():
    assert apdu.select_fid_no_rsp(0xDF04) == "00A4000C02DF04"


def test_select_fid_fcp_contains_fid():
    cmd = apdu.select_fid_fcp(0x1234)
    assert cmd.startswith("00A40004")
    assert int(cmd[-4:], 16) == 0x1234
    assert int(cmd[8:10], 16) == 2


def test_select_fid_out_of_range():
    with pytest.raises(ValueError):
        apdu.select_fid_fcp(0x10000)


@pytest.mark.parametrize(
    "builder,header",
    [
        (apdu.create_file, "00E00000"),
        (apdu.append_record, "00E20000"),
        (apdu.change_reference_data_pin, "00240100"),
    ],
)
def test_data_commands_round_trip(builder, header):
    payload = bytes(range(10, 30))
    cmd = builder(payload)
    assert cmd.startswith(header)
    assert int(cmd[8:10], 16) == len(payload)
    assert bytes.fromhex(cmd[10:]) == payload


def test_data_too_long_rejected():
    with pytest.raises(ValueError):
        apdu.create_file(bytes(256))


def test_update_binary_offset_and_data():
    data = b"\xaa\xbb\xcc"
    cmd = apdu.update_binary(0x1F0, data)
    assert cmd.startswith("00D6")
    assert int(cmd[4:8], 16) == 0x1F0
    assert int(cmd[8:10], 16) == len(data)
    assert bytes.fromhex(cmd[10:]) == data


def test_read_binary_layout():
    cmd = apdu.read_binary(480, 240)
    assert cmd.startswith("00B0")
    assert int(cmd[4:8], 16) == 480
    assert int(cmd[8:10], 16) == 240
    assert len(cmd) == 10


def test_verify_pin_layout():
    passwd = bytes([1, 3, 5, 7, 9, 11, 13, 15])
    cmd = apdu.verify_pin(0x81, passwd)
    assert cmd.startswith("002000")
    assert int(cmd[6:8], 16) == 0x81
    assert int(cmd[8:10], 16) == len(passwd)
    assert bytes.fromhex(cmd[10:]) == passwd