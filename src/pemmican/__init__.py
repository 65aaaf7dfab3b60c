"""PEM-first RSA key utilities.

Provides RSA key-pair generation for signing (RSA-PSS) and encryption (RSA-OAEP), PEM encoding and decoding of
SPKI public and PKCS8 private keys, signing and verification of text, and encryption and decryption of short
text messages. The cryptography itself is delegated to the `cryptography` library.

Typical usage example:

    pair = generate_key_pair("encryption")
    c = encrypt_with_public_key("Hi there!", pair.public_key_pem)
    r = decrypt_with_private_key(c, pair.private_key_pem)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from pemmican.errors import DecryptionError
from pemmican.errors import FormatError
from pemmican.errors import InvalidUsageError
from pemmican.errors import KeyImportError
from pemmican.errors import KeyUsageError
from pemmican.errors import PemmicanError
from pemmican.errors import PlaintextTooLargeError
from pemmican.keycrypto import decrypt_with_private_key
from pemmican.keycrypto import encrypt_with_public_key
from pemmican.keycrypto import generate_key_pair
from pemmican.keycrypto import KeyPair
from pemmican.keycrypto import sign_data
from pemmican.keycrypto import SignatureResult
from pemmican.keycrypto import Usage
from pemmican.keycrypto import verify_signature
from pemmican.pem import bytes_to_pem
from pemmican.pem import pem_to_bytes
from pemmican.pem import read_pem
from pemmican.pem import write_pem
from pemmican.provider import CryptographicProvider

__version__ = "0.1.0"
__all__ = [
    "CryptographicProvider",
    "DecryptionError",
    "FormatError",
    "InvalidUsageError",
    "KeyImportError",
    "KeyPair",
    "KeyUsageError",
    "PemmicanError",
    "PlaintextTooLargeError",
    "SignatureResult",
    "Usage",
    "bytes_to_pem",
    "decrypt_with_private_key",
    "encrypt_with_public_key",
    "generate_key_pair",
    "pem_to_bytes",
    "read_pem",
    "sign_data",
    "verify_signature",
    "write_pem",
]
