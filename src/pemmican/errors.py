"""Exceptions raised by Pemmican.

Every error derives from PemmicanError as well as the builtin exception a caller would otherwise expect, so
``except ValueError`` keeps working for malformed input. Signature mismatches are never errors: verification
reports them as False.
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0


class PemmicanError(Exception):
    """Base class for all Pemmican errors."""


class InvalidUsageError(PemmicanError, ValueError):
    """Key usage is neither 'encryption' nor 'signing'."""


class FormatError(PemmicanError, ValueError):
    """Malformed PEM or base64 text, or an unknown PEM/export format."""


class KeyImportError(PemmicanError, ValueError):
    """Key material was rejected during import."""


class KeyUsageError(PemmicanError, ValueError):
    """A key handle was used for an operation it was not created for."""


class PlaintextTooLargeError(PemmicanError, ValueError):
    """Plaintext exceeds the RSA-OAEP bound of the key."""


class DecryptionError(PemmicanError, RuntimeError):
    """Ciphertext could not be decrypted with the given key."""
