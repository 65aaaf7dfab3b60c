"""The cryptographic provider behind Pemmican, built on the `cryptography` library.

Exposes a small handle-based interface (generate, export, import, sign, verify, encrypt, decrypt) with fixed RSA
algorithm descriptions. Handles remember the algorithm, extractability and usages they were created with and every
operation checks them before touching the key. Imported key material is inspected with pyasn1 first so that
anything but a plain RSA SPKI or PKCS8 structure is turned away before it reaches OpenSSL.

Typical usage example:

    prov = CryptographicProvider()
    pair = prov.generate_key(RSA_PSS, True, {"sign", "verify"})
    signature = prov.sign(RSA_PSS, pair.private_key, b"payload")
    assert prov.verify(RSA_PSS, pair.public_key, signature, b"payload")
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging
from typing import Iterable, NamedTuple

from cryptography.exceptions import InvalidSignature
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric import rsa
from pyasn1 import error
from pyasn1.codec.der import decoder
from pyasn1_modules import rfc5208
from pyasn1_modules import rfc5280
from pyasn1_modules import rfc8017

from pemmican.errors import DecryptionError
from pemmican.errors import FormatError
from pemmican.errors import KeyImportError
from pemmican.errors import KeyUsageError
from pemmican.errors import PlaintextTooLargeError

logger = logging.getLogger(__name__)

HASHES = {
    "SHA-256": hashes.SHA256,
}

ALGORITHM_USAGES = {
    "RSA-OAEP": frozenset({"encrypt", "decrypt"}),
    "RSA-PSS": frozenset({"sign", "verify"}),
}
PUBLIC_USAGES = frozenset({"encrypt", "verify"})
PRIVATE_USAGES = frozenset({"decrypt", "sign"})


class AlgorithmSpec(NamedTuple):
    """Description of an RSA algorithm and its parameters."""
    name: str
    modulus_length: int = 2048
    public_exponent: int = 65537
    hash: str = "SHA-256"
    salt_length: int | None = None


RSA_OAEP = AlgorithmSpec("RSA-OAEP")
RSA_PSS = AlgorithmSpec("RSA-PSS", salt_length=32)


class KeyHandle(NamedTuple):
    """A provider key together with the restrictions it was created under."""
    key: rsa.RSAPrivateKey | rsa.RSAPublicKey
    algorithm: AlgorithmSpec
    extractable: bool
    usages: frozenset[str]

    @property
    def is_private(self) -> bool:
        return isinstance(self.key, rsa.RSAPrivateKey)


class KeyHandlePair(NamedTuple):
    public_key: KeyHandle
    private_key: KeyHandle


def max_plaintext_length(key_size: int, hashname: str = "SHA-256") -> int:
    """The longest message RSA-OAEP can encrypt.

    Args:
        key_size: Modulus size in bits.
        hashname: Hash used for OAEP and MGF1.

    Returns:
        Maximum plaintext length in bytes, k - 2 * hLen - 2.
    """
    hlen = HASHES[hashname].digest_size
    return (key_size + 7) // 8 - 2 * hlen - 2


def check_usages(algorithm: AlgorithmSpec, usages: Iterable[str]) -> frozenset[str]:
    """Validates requested usages against the algorithm.

    Raises:
        KeyUsageError: If the algorithm is unknown, or usages are empty or not permitted for it.
    """
    try:
        allowed = ALGORITHM_USAGES[algorithm.name]
    except KeyError:
        raise KeyUsageError(f"Unsupported algorithm: {algorithm.name}") from None
    requested = frozenset(usages)
    if not requested:
        raise KeyUsageError("At least one key usage is required.")
    if not requested <= allowed:
        raise KeyUsageError(f"Usages {sorted(requested - allowed)} are not valid for {algorithm.name}.")
    return requested


def check_key_size(algorithm: AlgorithmSpec, key_size: int) -> None:
    """Checks that a modulus is large enough for the algorithm's encoding.

    RSA-PSS needs an encoded message of at least hLen + sLen + 2 bytes, RSA-OAEP a modulus of at least
    2 * hLen + 2 bytes.

    Args:
        algorithm: Algorithm the key will be used with.
        key_size: Modulus size in bits.

    Raises:
        KeyImportError: If the key is too small.
    """
    hlen = HASHES[algorithm.hash].digest_size
    if algorithm.name == "RSA-PSS":
        salt = algorithm.salt_length if algorithm.salt_length is not None else hlen
        fits = (key_size - 1 + 7) // 8 >= hlen + salt + 2
    else:
        fits = max_plaintext_length(key_size, algorithm.hash) >= 0
    if not fits:
        raise KeyImportError(f"{key_size}-bit key is too small for {algorithm.name} with {algorithm.hash}.")


def inspect_key_info(fmt: str, data: bytes) -> None:
    """Checks that DER key material is an RSA SPKI or PKCS8 structure.

    Args:
        fmt: "spki" or "pkcs8".
        data: The DER bytes.

    Raises:
        KeyImportError: If the structure does not parse or is not an rsaEncryption key.
    """
    spec = rfc5208.PrivateKeyInfo() if fmt == "pkcs8" else rfc5280.SubjectPublicKeyInfo()
    try:
        info, rest = decoder.decode(data, asn1Spec=spec)
    except error.PyAsn1Error as err:
        raise KeyImportError(f"Key material is not a valid {fmt.upper()} structure.") from err
    if rest:
        raise KeyImportError(f"Trailing data after {fmt.upper()} structure.")
    if fmt == "pkcs8":
        if info["version"] != 0:
            raise KeyImportError("Unsupported version of private key information wrapper.")
        algorithm = info["privateKeyAlgorithm"]["algorithm"]
    else:
        algorithm = info["algorithm"]["algorithm"]
    if algorithm != rfc8017.rsaEncryption:
        raise KeyImportError(f"Key algorithm {algorithm} is not supported.")


class CryptographicProvider:
    """RSA provider over the `cryptography` library.

    Holds no state; one instance may be shared between threads.
    """

    def generate_key(self, algorithm: AlgorithmSpec, extractable: bool, usages: Iterable[str]) -> KeyHandlePair:
        """Generates an RSA key pair.

        The public half is always extractable and receives the public usages among those requested; the private
        half receives the private usages and the requested extractability.

        Args:
            algorithm: RSA_OAEP or RSA_PSS (or a variant with other sizes).
            extractable: Whether the private key may be exported.
            usages: Requested key usages.

        Returns:
            Handles for the new public and private key.
        """
        requested = check_usages(algorithm, usages)
        key = rsa.generate_private_key(public_exponent=algorithm.public_exponent, key_size=algorithm.modulus_length)
        logger.debug("Generated %d-bit %s key pair", algorithm.modulus_length, algorithm.name)
        return KeyHandlePair(
            KeyHandle(key.public_key(), algorithm, True, requested & PUBLIC_USAGES),
            KeyHandle(key, algorithm, extractable, requested & PRIVATE_USAGES),
        )

    def export_key(self, fmt: str, handle: KeyHandle) -> bytes:
        """Exports a key as DER.

        Args:
            fmt: "spki" for public keys, "pkcs8" for private keys.
            handle: The key to export.

        Returns:
            The DER encoded key.

        Raises:
            FormatError: If fmt is unknown.
            KeyUsageError: If the handle is not extractable or does not fit the format.
        """
        if fmt not in ("spki", "pkcs8"):
            raise FormatError(f"Unsupported export format: {fmt}")
        if not handle.extractable:
            raise KeyUsageError("Key is not extractable.")
        if fmt == "pkcs8":
            if not handle.is_private:
                raise KeyUsageError("Only private keys can be exported as PKCS8.")
            return handle.key.private_bytes(serialization.Encoding.DER, serialization.PrivateFormat.PKCS8,
                                            serialization.NoEncryption())
        if handle.is_private:
            raise KeyUsageError("Only public keys can be exported as SPKI.")
        return handle.key.public_bytes(serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo)

    def import_key(self, fmt: str, data: bytes, algorithm: AlgorithmSpec, extractable: bool,
                   usages: Iterable[str]) -> KeyHandle:
        """Imports a DER encoded RSA key.

        Args:
            fmt: "spki" or "pkcs8".
            data: The DER bytes.
            algorithm: Algorithm the key will be used with.
            extractable: Whether the key may be exported again.
            usages: Usages granted to the key.

        Returns:
            A handle to the imported key.

        Raises:
            FormatError: If fmt is unknown.
            KeyImportError: If the key material is rejected.
            KeyUsageError: If the usages do not fit the algorithm or the key type.
        """
        if fmt not in ("spki", "pkcs8"):
            raise FormatError(f"Unsupported import format: {fmt}")
        requested = check_usages(algorithm, usages)
        private = fmt == "pkcs8"
        if not requested <= (PRIVATE_USAGES if private else PUBLIC_USAGES):
            raise KeyUsageError(f"Usages {sorted(requested)} are not valid for a {fmt.upper()} key.")
        inspect_key_info(fmt, data)
        try:
            if private:
                key = serialization.load_der_private_key(data, password=None)
            else:
                key = serialization.load_der_public_key(data)
        except (ValueError, TypeError, UnsupportedAlgorithm) as err:
            raise KeyImportError(f"Key material was rejected: {err}") from err
        if not isinstance(key, (rsa.RSAPrivateKey, rsa.RSAPublicKey)):
            raise KeyImportError("Key material is not an RSA key.")
        check_key_size(algorithm, key.key_size)
        logger.debug("Imported %d-bit %s key for %s", key.key_size, fmt.upper(), algorithm.name)
        return KeyHandle(key, algorithm, extractable, requested)

    def sign(self, algorithm: AlgorithmSpec, handle: KeyHandle, data: bytes) -> bytes:
        """Signs data with RSA-PSS."""
        self._check_handle(algorithm, handle, "sign")
        return handle.key.sign(data, self._pss(algorithm), HASHES[algorithm.hash]())

    def verify(self, algorithm: AlgorithmSpec, handle: KeyHandle, signature: bytes, data: bytes) -> bool:
        """Verifies an RSA-PSS signature.

        Returns:
            True if the signature matches, False for any mismatch including a wrong signature length.
        """
        self._check_handle(algorithm, handle, "verify")
        try:
            handle.key.verify(signature, data, self._pss(algorithm), HASHES[algorithm.hash]())
        except InvalidSignature:
            return False
        return True

    def encrypt(self, algorithm: AlgorithmSpec, handle: KeyHandle, data: bytes) -> bytes:
        """Encrypts data with RSA-OAEP.

        Raises:
            PlaintextTooLargeError: If data exceeds the OAEP bound of the key.
        """
        self._check_handle(algorithm, handle, "encrypt")
        limit = max_plaintext_length(handle.key.key_size, algorithm.hash)
        if len(data) > limit:
            raise PlaintextTooLargeError(f"Plaintext of {len(data)} bytes exceeds the {limit} byte limit.")
        return handle.key.encrypt(data, self._oaep(algorithm))

    def decrypt(self, algorithm: AlgorithmSpec, handle: KeyHandle, data: bytes) -> bytes:
        """Decrypts RSA-OAEP ciphertext.

        Raises:
            DecryptionError: If the ciphertext does not belong to the key or is corrupted.
        """
        self._check_handle(algorithm, handle, "decrypt")
        try:
            return handle.key.decrypt(data, self._oaep(algorithm))
        except ValueError as err:
            raise DecryptionError("Decryption error.") from err

    @staticmethod
    def _check_handle(algorithm: AlgorithmSpec, handle: KeyHandle, usage: str) -> None:
        if handle.algorithm.name != algorithm.name:
            raise KeyUsageError(f"Key was created for {handle.algorithm.name}, not {algorithm.name}.")
        if usage not in handle.usages:
            raise KeyUsageError(f"Key does not permit '{usage}'.")

    @staticmethod
    def _pss(algorithm: AlgorithmSpec) -> padding.PSS:
        hashf = HASHES[algorithm.hash]
        salt = algorithm.salt_length if algorithm.salt_length is not None else hashf.digest_size
        return padding.PSS(mgf=padding.MGF1(hashf()), salt_length=salt)

    @staticmethod
    def _oaep(algorithm: AlgorithmSpec) -> padding.OAEP:
        hashf = HASHES[algorithm.hash]
        return padding.OAEP(mgf=padding.MGF1(algorithm=hashf()), algorithm=hashf(), label=None)
