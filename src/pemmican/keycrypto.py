"""Key generation, signing, verification, encryption and decryption over PEM encoded RSA keys.

Each function is an independent transaction against the cryptographic provider: decode the PEM, import the key
with exactly the rights the operation needs, perform the operation and hand back text (PEM or base64).
Algorithm parameters are fixed: RSA 2048, public exponent 65537, SHA-256, RSA-PSS with a 32 byte salt for
signatures and RSA-OAEP for encryption.

Typical usage example:

    pair = generate_key_pair("signing")
    result = sign_data("Hello, World!", pair.private_key_pem)
    assert verify_signature("Hello, World!", result.signature_base64, pair.public_key_pem)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import datetime
import enum
import logging
import pathlib
from typing import NamedTuple

from pemmican import pem
from pemmican.errors import DecryptionError
from pemmican.errors import InvalidUsageError
from pemmican.provider import AlgorithmSpec
from pemmican.provider import CryptographicProvider
from pemmican.provider import RSA_OAEP
from pemmican.provider import RSA_PSS

logger = logging.getLogger(__name__)


class Usage(str, enum.Enum):
    ENCRYPTION = "encryption"
    SIGNING = "signing"


USAGE_ALGORITHMS: dict[Usage, tuple[AlgorithmSpec, frozenset[str]]] = {
    Usage.ENCRYPTION: (RSA_OAEP, frozenset({"encrypt", "decrypt"})),
    Usage.SIGNING: (RSA_PSS, frozenset({"sign", "verify"})),
}

default_provider = CryptographicProvider()


class KeyPair(NamedTuple):
    """PEM encoded RSA key pair."""
    public_key_pem: str
    private_key_pem: str

    def export(self, private_file: pathlib.Path | str, public_file: pathlib.Path | str) -> None:
        """Writes both keys to disk.

        Args:
            private_file: Destination of the PKCS8 private key.
            public_file: Destination of the SPKI public key.
        """
        pem.write_pem(private_file, self.private_key_pem)
        pem.write_pem(public_file, self.public_key_pem)


class SignatureResult(NamedTuple):
    signature_base64: str
    timestamp_iso: str


def isotimestamp(moment: datetime.datetime | None = None) -> str:
    """Formats a moment as UTC ISO-8601 with milliseconds and a Z suffix."""
    moment = moment or datetime.datetime.now(datetime.timezone.utc)
    return moment.astimezone(datetime.timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def resolve_usage(usage: Usage | str) -> Usage:
    """Coerces a usage name into a Usage.

    Raises:
        InvalidUsageError: If usage is neither 'encryption' nor 'signing'.
    """
    try:
        return Usage(usage)
    except ValueError:
        raise InvalidUsageError("Invalid usage type. Must be 'encryption' or 'signing'.") from None


def generate_key_pair(usage: Usage | str, *, provider: CryptographicProvider | None = None) -> KeyPair:
    """Generates an RSA key pair for the given usage.

    'encryption' produces an RSA-OAEP key pair and 'signing' an RSA-PSS one; both are 2048 bit with exponent
    65537 and SHA-256.

    Args:
        usage: Either 'encryption' or 'signing'.
        provider: Cryptographic provider, defaults to the shared one.

    Returns:
        The public key as SPKI PEM and the private key as PKCS8 PEM.

    Raises:
        InvalidUsageError: If usage is not recognized.
    """
    usage = resolve_usage(usage)
    provider = provider or default_provider
    algorithm, usages = USAGE_ALGORITHMS[usage]
    handles = provider.generate_key(algorithm, True, usages)
    public_der = provider.export_key("spki", handles.public_key)
    private_der = provider.export_key("pkcs8", handles.private_key)
    logger.debug("Generated %s key pair (%s)", usage.value, algorithm.name)
    return KeyPair(pem.bytes_to_pem(public_der, "PUBLIC"), pem.bytes_to_pem(private_der, "PRIVATE"))


def sign_data(data: str, private_key_pem: str, *, provider: CryptographicProvider | None = None) -> SignatureResult:
    """Signs text with an RSA-PSS private key.

    Args:
        data: Text to sign, UTF-8 encoded before signing.
        private_key_pem: PKCS8 PEM private key.
        provider: Cryptographic provider, defaults to the shared one.

    Returns:
        The base64 signature and the time of signing.

    Raises:
        FormatError: If the PEM is malformed.
        KeyImportError: If the PEM does not hold an RSA private key.
    """
    provider = provider or default_provider
    der = pem.pem_to_bytes(private_key_pem, "PRIVATE")
    key = provider.import_key("pkcs8", der, RSA_PSS, False, {"sign"})
    signature = provider.sign(RSA_PSS, key, data.encode("utf-8"))
    return SignatureResult(pem.b64_enc(signature), isotimestamp())


def verify_signature(data: str,
                     signature_base64: str,
                     public_key_pem: str,
                     *,
                     provider: CryptographicProvider | None = None) -> bool:
    """Verifies an RSA-PSS signature over text.

    Args:
        data: The signed text.
        signature_base64: Base64 signature as returned by sign_data.
        public_key_pem: SPKI PEM public key.
        provider: Cryptographic provider, defaults to the shared one.

    Returns:
        True if the signature matches, False otherwise.

    Raises:
        FormatError: If the signature or PEM is malformed.
        KeyImportError: If the PEM does not hold an RSA public key.
    """
    provider = provider or default_provider
    signature = pem.b64_dec(signature_base64)
    der = pem.pem_to_bytes(public_key_pem, "PUBLIC")
    key = provider.import_key("spki", der, RSA_PSS, False, {"verify"})
    return provider.verify(RSA_PSS, key, signature, data.encode("utf-8"))


def encrypt_with_public_key(data: str, public_key_pem: str, *, provider: CryptographicProvider | None = None) -> str:
    """Encrypts text with an RSA-OAEP public key.

    Args:
        data: Text to encrypt. At most 190 bytes once UTF-8 encoded, for a 2048 bit key.
        public_key_pem: SPKI PEM public key.
        provider: Cryptographic provider, defaults to the shared one.

    Returns:
        Base64 ciphertext.

    Raises:
        FormatError: If the PEM is malformed.
        KeyImportError: If the PEM does not hold an RSA public key.
        PlaintextTooLargeError: If data is too long for the key.
    """
    provider = provider or default_provider
    der = pem.pem_to_bytes(public_key_pem, "PUBLIC")
    key = provider.import_key("spki", der, RSA_OAEP, False, {"encrypt"})
    return pem.b64_enc(provider.encrypt(RSA_OAEP, key, data.encode("utf-8")))


def decrypt_with_private_key(encrypted_data: str,
                             private_key_pem: str,
                             *,
                             provider: CryptographicProvider | None = None) -> str:
    """Decrypts RSA-OAEP ciphertext into text.

    Args:
        encrypted_data: Base64 ciphertext as returned by encrypt_with_public_key.
        private_key_pem: PKCS8 PEM private key.
        provider: Cryptographic provider, defaults to the shared one.

    Returns:
        The decrypted text.

    Raises:
        FormatError: If the ciphertext or PEM is malformed.
        KeyImportError: If the PEM does not hold an RSA private key.
        DecryptionError: If the ciphertext does not decrypt under the key, or not to UTF-8 text.
    """
    provider = provider or default_provider
    ciphertext = pem.b64_dec(encrypted_data)
    der = pem.pem_to_bytes(private_key_pem, "PRIVATE")
    key = provider.import_key("pkcs8", der, RSA_OAEP, False, {"decrypt"})
    cleartext = provider.decrypt(RSA_OAEP, key, ciphertext)
    try:
        return cleartext.decode("utf-8")
    except UnicodeDecodeError as err:
        raise DecryptionError("Decrypted payload is not valid UTF-8.") from err
