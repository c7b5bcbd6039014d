"""
Verification of aws-chunked (STREAMING-AWS4-HMAC-SHA256-PAYLOAD) request
bodies.

Each chunk of the body is framed as:
    hex(size) + ";chunk-signature=" + signature + "\\r\\n" +
    payload + "\\r\\n"

and its signature chains to the one before it, starting from the signature
of the request itself. A zero-sized chunk ends the body.
"""
from hashlib import sha256
from logging import getLogger

from .constants import AWS4_HMAC_SHA256_PAYLOAD, EMPTY_STRING_HASH
from .exc import errors

# Longest chunk header we are willing to buffer while looking for CRLF
MAX_CHUNK_HEADER_SIZE = 1024

_crlf = b"\r\n"
_chunk_signature = "chunk-signature"

log = getLogger("awssigauth.streaming")

def construct_chunk_string_to_sign(timestamp, credential_scope,
                                   last_signature, chunk=None):
    """
    construct_chunk_string_to_sign(timestamp, credential_scope,
                                   last_signature, chunk=None) -> str

    The string signed for a single chunk:
        AWS4-HMAC-SHA256-PAYLOAD + '\\n' +
        timestamp + '\\n' +
        credential_scope + '\\n' +
        last_signature + '\\n' +
        hex(sha256("")) + '\\n' +
        hex(sha256(chunk))

    The terminal chunk (None or empty) hashes as the empty string.
    """
    if chunk:
        current_chunk_hash = sha256(chunk).hexdigest()
    else:
        current_chunk_hash = EMPTY_STRING_HASH

    return "\n".join([
        AWS4_HMAC_SHA256_PAYLOAD, timestamp, credential_scope,
        last_signature, EMPTY_STRING_HASH, current_chunk_hash])

def parse_chunk_header(line):
    """
    parse_chunk_header(line) -> (size, signature)

    Parse a chunk header (without its CRLF). None is returned if the header
    is malformed.
    """
    try:
        line = line.decode("ascii")
    except UnicodeDecodeError:
        return None

    size, _, params = line.partition(";")
    try:
        size = int(size, 16)
    except ValueError:
        return None

    if size < 0:
        return None

    key, _, signature = params.partition("=")
    signature = signature.strip()
    if key.strip() != _chunk_signature or not signature:
        return None

    return size, signature


class V4Transform(object):
    """
    An async iterator over the decoded payload of a streaming V4 upload.

    The chunk signature of each chunk is verified through the identity
    backend before its payload is yielded. Bytes received after the
    terminal chunk are discarded. An AuthError is raised if the framing is
    invalid, a chunk signature does not match, or the source ends before the
    terminal chunk.
    """

    def __init__(self, streaming_params, vault, source):
        """
        V4Transform(streaming_params, vault, source)

        streaming_params: The parameters returned alongside a successful
            authentication (access_key, signature_from_request, region,
            scope_date, timestamp, credential_scope).
        vault: The Vault used to verify each chunk.
        source: An async iterable of bytes: the raw request body.
        """
        super(V4Transform, self).__init__()
        self.access_key = streaming_params["access_key"]
        self.region = streaming_params["region"]
        self.scope_date = streaming_params["scope_date"]
        self.timestamp = streaming_params["timestamp"]
        self.credential_scope = streaming_params["credential_scope"]
        self.last_signature = streaming_params["signature_from_request"]
        self.vault = vault
        self.source = source
        self.finished = False
        return

    def __aiter__(self):
        return self._transform()

    async def _authenticate_chunk(self, signature, chunk):
        string_to_sign = construct_chunk_string_to_sign(
            self.timestamp, self.credential_scope, self.last_signature, chunk)
        log.debug("constructed chunk string to sign: %r", string_to_sign)

        params = {
            "version": 4,
            "data": {
                "access_key": self.access_key,
                "signature_from_request": signature,
                "region": self.region,
                "scope_date": self.scope_date,
                "string_to_sign": string_to_sign,
                "timestamp": self.timestamp,
                "credential_scope": self.credential_scope,
            },
        }
        err, _, _, _ = await self.vault.authenticate_v4_request(params, None)
        if err:
            log.debug("chunk signature rejected: %s", err.code)
            raise err.copy()

        self.last_signature = signature
        return

    async def _transform(self):
        buf = bytearray()
        size = signature = None
        source = self.source.__aiter__()
        exhausted = False

        while True:
            if size is None:
                # Waiting for a chunk header.
                end = buf.find(_crlf)
                if end >= 0:
                    header = parse_chunk_header(bytes(buf[:end]))
                    if header is None:
                        log.debug("invalid chunk header: %r", bytes(buf[:end]))
                        raise errors.InvalidArgument.copy()
                    size, signature = header
                    del buf[:end + 2]
                    continue

                if len(buf) > MAX_CHUNK_HEADER_SIZE:
                    log.debug("chunk header exceeds %d bytes",
                              MAX_CHUNK_HEADER_SIZE)
                    raise errors.InvalidArgument.copy()
            elif size == 0:
                await self._authenticate_chunk(signature, None)
                self.finished = True
                return
            elif len(buf) >= size + 2:
                if buf[size:size + 2] != _crlf:
                    log.debug("chunk payload is not followed by CRLF")
                    raise errors.InvalidArgument.copy()

                chunk = bytes(buf[:size])
                del buf[:size + 2]
                await self._authenticate_chunk(signature, chunk)
                size = signature = None
                yield chunk
                continue

            if exhausted:
                log.debug("request body ended before the terminal chunk")
                raise errors.InvalidArgument.copy()

            try:
                data = await source.__anext__()
            except StopAsyncIteration:
                exhausted = True
                continue

            buf.extend(data)

# Local variables:
# mode: Python
# tab-width: 8
# indent-tabs-mode: nil
# End:
# vi: set expandtab tabstop=8
