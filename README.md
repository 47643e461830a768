# uiccat

`uiccat` talks to a UICC (SIM) secure element through a modem's AT command
interface. It opens a logical channel to a crypto application with `AT+CCHO`,
exchanges APDUs wrapped in `AT+CGLA`, and closes the channel with `AT+CCHC`.
On top of that it creates, writes, reads, lists and deletes files on the card.

The package uses only the standard library.

## Modules

- `uiccat.apdu`: builders that return command APDUs as upper-case hex
  strings: `select_aid`, `select_crypto_app`, `select_fid_no_rsp`,
  `select_fid_fcp`, `select_first_file_cur_dir_fcp`,
  `select_next_file_cur_dir_fcp`, `set_lcs_use`, `get_challenge`,
  `get_challenge_4_bytes`, `create_file`, `delete_current_file`,
  `append_record`, `change_reference_data_pin`, `update_binary`,
  `read_binary`, `verify_pin`. Values that do not fit into their byte or
  two-byte field raise `ValueError`. The crypto application's AID is
  `CRYPTO_AID`.
- `uiccat.response`: parsing of modem replies. `parse_cgla_response` turns a
  `+CGLA: <len>,"<hex>"` reply into an `ApduResponse` holding `sw1`, `sw2`
  and `data`, with `status`, `status_equals`, `is_ok` and `format`.
  `parse_esimexist_response` returns the 0/1 flag of a `+ESIMEXIST:` reply,
  and `file_size_from_fcp` returns the size in tag 0x80 of an FCP template.
  Malformed input raises `ResponseFormatError` (a `ValueError`).
- `uiccat.fcp`: `parse_fcp` decodes an FCP template, with or without its
  outer 0x62 tag, into an `FcpDescriptor`: size, file descriptor, FID, DF
  name, SFI, life cycle state, EF.ARR reference, and for key files the
  proprietary 0xA5 tags in a `KfProprietary`. The descriptor offers
  `is_df_or_mf`, `is_bf`, `is_kf`, `fid`, `file_size` and a multi-line
  `describe`. `file_type_name` and `life_cycle_state_name` name the raw
  bytes.
- `uiccat.at_channel`: `AtChannel(stream, read_output=True, verbose=False)`
  wraps any object with `write(bytes)` and `read(size)` (an unbuffered file
  opened on the modem device, a serial port object, a socket wrapper) and
  carries the AT conversation: `open_crypto_channel`,
  `close_crypto_channel(force)`, `is_crypto_channel_open`,
  `check_se_existence`, `select_crypto_aid`, `send_apdu`, `transmit`
  (send an APDU and return its `ApduResponse`) and `get_random_number` (a
  signed 32-bit value from GET CHALLENGE). Lower-level helpers build the raw
  commands: `at_cmd_sim_exist`, `at_cmd_open_logical_channel`,
  `at_cmd_close_logical_channel`, `at_cmd_send_apdu`, and `count_lines`
  counts CR LF terminators. Failures raise subclasses of `AtError`:
  `MessageTooLongError`, `ConnectionIssueError` and `NoLogicalChannelError`.
  With `read_output=False` replies are not read and `read_message` returns
  an empty string. Progress is reported through the `logging` module under
  the `uiccat.at_channel` logger; `verbose=True` logs each CGLA reply at
  INFO level.
- `uiccat.files`: file management over any object with a `transmit` method,
  usually an `AtChannel`. Frozen dataclasses `DirDescriptor`,
  `EfarrDescriptor`, `KfDescriptor` and `BfDescriptor` describe files to
  create; `build_df_fcp`, `build_efarr_fcp`, `build_kf_fcp` and
  `build_bf_fcp` turn them into FCP templates. Operations: `create_df`,
  `create_efarr_file`, `add_efarr_records`, `create_kf_file`,
  `change_kf_reference_data`, `create_bf_file`, `write_bf_file`,
  `read_bf_file`, `verify_pin`, `select_fid`, `select_fid_fcp`,
  `fid_exists`, `set_lcs_use`, `delete_current_file`, `iter_files_cur_dir`
  and `print_all_files_cur_dir` (prints each file's description and returns
  how many there were). Binary data travels in chunks of 240 bytes. A status
  other than 9000 raises `FileOperationError`, which carries the
  `response`.

## Example

```python
from uiccat import apdu
from uiccat.at_channel import AtChannel
from uiccat.files import iter_files_cur_dir, read_bf_file

# Building APDUs needs no device.
select_cmd = apdu.select_fid_fcp(0x3F00)      # "00A40004023F00"
challenge_cmd = apdu.get_challenge_4_bytes()  # "0084000004"

# Talking to a card needs a read/write byte stream to the modem.
with open("/dev/ttyUSB0", "r+b", buffering=0) as stream:
    channel = AtChannel(stream)
    channel.open_crypto_channel()
    try:
        channel.select_crypto_aid()
        print(channel.get_random_number())

        for descriptor in iter_files_cur_dir(channel):
            print(descriptor.describe())

        content = read_bf_file(channel, 0x0401)
    finally:
        channel.close_crypto_channel()
```

Decoding an FCP template you already have:

```python
from uiccat.fcp import parse_fcp

descriptor = parse_fcp(bytes.fromhex("621782020121830204038A01058B03EF04048002005388011"
                                     "8"))
print(descriptor.fid(), descriptor.file_size(), descriptor.is_bf())  # 1027 83 True
```

## What it does not do

- There is no command-line program; the package is a library.
- It does not open or configure the serial device (baud rate, timeouts,
  raw mode). Pass it a stream that is already set up.
- It has no interactive mode, and no user or secure-storage layer on top of
  the file operations: registering users, keeping per-user files and
  passwords are left to the caller.

## Tests

Install the `test` extra and run `pytest` from the project directory.