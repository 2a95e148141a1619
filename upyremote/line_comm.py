"""upyremote: line oriented exchange with interactive prompt"""

import upyremote.errors as _errors


EOL = b'\r'
SEND_TIMEOUT = 30


def strip_echo(data, line, prompt):
    """Remove echoed command line and trailing prompt from response

    Arguments:
        data: received bytes
        line: command line which was sent
        prompt: prompt marker

    Returns:
        response with LF line endings
    """
    data = data.replace(b'\r\n', b'\n')
    line = line.rstrip(b'\r\n')
    pos = data.find(line) if line else -1
    if pos >= 0 and not data[:pos].strip():
        eol_pos = data.find(b'\n', pos + len(line))
        data = b'' if eol_pos < 0 else data[eol_pos + 1:]
    head, sep, last = data.rpartition(b'\n')
    if last.endswith(prompt.strip(b'\r\n')):
        data = head + sep
    return data


def send_line(scanner, line, prompt, timeout=None, eol=EOL, max_wait=SEND_TIMEOUT, log=None):
    """Send single command line and read response

    Arguments:
        scanner: PromptScanner of connection
        line: command line (without line ending)
        prompt: prompt marker which ends response
        timeout: when set, read exactly this time and accept partial output,
            otherwise wait for prompt (at most max_wait)

    Returns:
        response without echoed command and prompt

    Raises:
        ProtocolFraming when prompt did not reappear
    """
    if isinstance(line, str):
        line = line.encode('utf-8')
    scanner.flush()
    if log:
        log.info("SEND: %s", line)
    scanner.conn.write(line + eol)
    if timeout is None:
        result = scanner.read_until(prompt, max_wait)
        if not result.matched:
            raise _errors.ProtocolFraming(
                f'Prompt {prompt} did not reappear', result.data)
    else:
        result = scanner.read_for(timeout)
    return strip_echo(result.data, line, prompt)
