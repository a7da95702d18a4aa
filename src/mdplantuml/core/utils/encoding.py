"""PlantUML text encoding: raw deflate + the server's URL-safe 64-char alphabet"""

import zlib


ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz-_"


def encode(text: str) -> str:
    """Encode diagram text into the compact token accepted by PlantUML servers."""
    # strip the 2-byte zlib header and 4-byte adler32 trailer
    data = zlib.compress(text.encode("utf-8"), 9)[2:-4]
    out = []
    for i in range(0, len(data), 3):
        b1, b2, b3 = (data[i:i + 3] + b"\x00\x00")[:3]
        out.append(ALPHABET[b1 >> 2])
        out.append(ALPHABET[((b1 & 0x3) << 4) | (b2 >> 4)])
        out.append(ALPHABET[((b2 & 0xF) << 2) | (b3 >> 6)])
        out.append(ALPHABET[b3 & 0x3F])
    return "".join(out)


def decode(token: str) -> str:
    """Inverse of encode; used for diagnostics and tests."""
    data = bytearray()
    for i in range(0, len(token), 4):
        c1, c2, c3, c4 = (ALPHABET.index(c) for c in token[i:i + 4].ljust(4, "0"))
        data.append((c1 << 2) | (c2 >> 4))
        data.append(((c2 & 0xF) << 4) | (c3 >> 2))
        data.append(((c3 & 0x3) << 6) | c4)
    # trailing pad bytes land in unused_data
    return zlib.decompressobj(-zlib.MAX_WBITS).decompress(bytes(data)).decode("utf-8")
