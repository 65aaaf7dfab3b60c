# pylint: disable=missing-module-docstring,redefined-outer-name,protected-access
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric import rsa
import pytest

import pemmican
from pemmican import provider as prov

payload = b"The quick brown fox jumps over the lazy dog"
known_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
known_pkcs8 = known_key.private_bytes(serialization.Encoding.DER, serialization.PrivateFormat.PKCS8,
                                      serialization.NoEncryption())
known_spki = known_key.public_key().public_bytes(serialization.Encoding.DER,
                                                 serialization.PublicFormat.SubjectPublicKeyInfo)


@pytest.fixture(scope="module")
def provider() -> prov.CryptographicProvider:
    return prov.CryptographicProvider()


@pytest.fixture(scope="module")
def pss_pair(provider) -> prov.KeyHandlePair:
    return provider.generate_key(prov.RSA_PSS, True, {"sign", "verify"})


@pytest.fixture(scope="module")
def oaep_pair(provider) -> prov.KeyHandlePair:
    return provider.generate_key(prov.RSA_OAEP, True, {"encrypt", "decrypt"})


def test_algorithm_constants():
    assert prov.RSA_OAEP == prov.AlgorithmSpec("RSA-OAEP", 2048, 65537, "SHA-256", None)
    assert prov.RSA_PSS == prov.AlgorithmSpec("RSA-PSS", 2048, 65537, "SHA-256", 32)


@pytest.mark.parametrize("key_size, expected", [(2048, 190), (3072, 318), (4096, 446)])
def test_max_plaintext_length(key_size, expected):
    assert prov.max_plaintext_length(key_size) == expected


@pytest.mark.slow
def test_generate_key_splits_usages(pss_pair, oaep_pair):
    assert pss_pair.public_key.usages == {"verify"}
    assert pss_pair.private_key.usages == {"sign"}
    assert oaep_pair.public_key.usages == {"encrypt"}
    assert oaep_pair.private_key.usages == {"decrypt"}
    for pair in (pss_pair, oaep_pair):
        assert not pair.public_key.is_private
        assert pair.private_key.is_private
        assert pair.private_key.key.key_size == 2048
        assert pair.public_key.key.public_numbers().e == 65537


@pytest.mark.slow
def test_generate_key_public_always_extractable(provider):
    pair = provider.generate_key(prov.RSA_PSS, False, {"sign", "verify"})
    assert pair.public_key.extractable
    assert not pair.private_key.extractable
    provider.export_key("spki", pair.public_key)
    with pytest.raises(pemmican.KeyUsageError, match="not extractable"):
        provider.export_key("pkcs8", pair.private_key)


@pytest.mark.parametrize("algorithm, usages", [
    (prov.RSA_PSS, {"encrypt"}),
    (prov.RSA_OAEP, {"sign", "decrypt"}),
    (prov.RSA_OAEP, set()),
    (prov.AlgorithmSpec("RSASSA-PKCS1-v1_5"), {"sign"}),
])
def test_generate_key_validates_usages(mocker, provider, algorithm, usages):
    gen = mocker.patch("pemmican.provider.rsa.generate_private_key")
    with pytest.raises(pemmican.KeyUsageError):
        provider.generate_key(algorithm, True, usages)
    gen.assert_not_called()


@pytest.mark.slow
def test_export_formats(provider, pss_pair):
    spki = provider.export_key("spki", pss_pair.public_key)
    pkcs8 = provider.export_key("pkcs8", pss_pair.private_key)
    assert serialization.load_der_public_key(spki).public_numbers() == pss_pair.public_key.key.public_numbers()
    loaded = serialization.load_der_private_key(pkcs8, None)
    assert loaded.private_numbers() == pss_pair.private_key.key.private_numbers()


@pytest.mark.slow
def test_export_validates(provider, pss_pair):
    with pytest.raises(pemmican.KeyUsageError):
        provider.export_key("pkcs8", pss_pair.public_key)
    with pytest.raises(pemmican.KeyUsageError):
        provider.export_key("spki", pss_pair.private_key)
    with pytest.raises(pemmican.FormatError, match="Unsupported export format"):
        provider.export_key("jwk", pss_pair.public_key)


def test_import_known_key(provider):
    priv = provider.import_key("pkcs8", known_pkcs8, prov.RSA_PSS, False, {"sign"})
    pub = provider.import_key("spki", known_spki, prov.RSA_PSS, False, {"verify"})
    assert priv.key.private_numbers() == known_key.private_numbers()
    assert pub.key.public_numbers() == known_key.public_key().public_numbers()
    assert not priv.extractable
    assert priv.usages == {"sign"}


def test_import_rejects_garbage(provider):
    with pytest.raises(pemmican.KeyImportError, match="not a valid PKCS8"):
        provider.import_key("pkcs8", b"\x00garbage", prov.RSA_PSS, False, {"sign"})
    with pytest.raises(pemmican.KeyImportError, match="not a valid SPKI"):
        provider.import_key("spki", b"Does the carpet match the drapes?", prov.RSA_PSS, False, {"verify"})


def test_import_rejects_trailing_data(provider):
    with pytest.raises(pemmican.KeyImportError, match="Trailing data"):
        provider.import_key("spki", known_spki + b"\x00", prov.RSA_PSS, False, {"verify"})


def test_import_rejects_swapped_formats(provider):
    with pytest.raises(pemmican.KeyImportError):
        provider.import_key("pkcs8", known_spki, prov.RSA_PSS, False, {"sign"})
    with pytest.raises(pemmican.KeyImportError):
        provider.import_key("spki", known_pkcs8, prov.RSA_PSS, False, {"verify"})


def test_import_rejects_non_rsa(provider):
    eckey = ec.generate_private_key(ec.SECP256R1())
    pkcs8 = eckey.private_bytes(serialization.Encoding.DER, serialization.PrivateFormat.PKCS8,
                                serialization.NoEncryption())
    spki = eckey.public_key().public_bytes(serialization.Encoding.DER,
                                           serialization.PublicFormat.SubjectPublicKeyInfo)
    with pytest.raises(pemmican.KeyImportError, match="not supported"):
        provider.import_key("pkcs8", pkcs8, prov.RSA_PSS, False, {"sign"})
    with pytest.raises(pemmican.KeyImportError, match="not supported"):
        provider.import_key("spki", spki, prov.RSA_PSS, False, {"verify"})


def test_import_reports_loader_failure(mocker, provider):
    mocker.patch("pemmican.provider.serialization.load_der_private_key", side_effect=ValueError("bad key"))
    with pytest.raises(pemmican.KeyImportError, match="bad key"):
        provider.import_key("pkcs8", known_pkcs8, prov.RSA_PSS, False, {"sign"})


def test_import_validates_usages(provider):
    with pytest.raises(pemmican.KeyUsageError):
        provider.import_key("spki", known_spki, prov.RSA_PSS, False, {"sign"})
    with pytest.raises(pemmican.KeyUsageError):
        provider.import_key("pkcs8", known_pkcs8, prov.RSA_OAEP, False, {"sign"})
    with pytest.raises(pemmican.FormatError, match="Unsupported import format"):
        provider.import_key("raw", known_spki, prov.RSA_PSS, False, {"verify"})


def test_sign_verify(provider):
    priv = provider.import_key("pkcs8", known_pkcs8, prov.RSA_PSS, False, {"sign"})
    pub = provider.import_key("spki", known_spki, prov.RSA_PSS, False, {"verify"})
    signature = provider.sign(prov.RSA_PSS, priv, payload)
    assert len(signature) == 256
    assert provider.verify(prov.RSA_PSS, pub, signature, payload)
    assert not provider.verify(prov.RSA_PSS, pub, signature, payload + b"!")
    assert not provider.verify(prov.RSA_PSS, pub, signature[:16], payload)


def test_sign_interoperates(provider):
    priv = provider.import_key("pkcs8", known_pkcs8, prov.RSA_PSS, False, {"sign"})
    signature = provider.sign(prov.RSA_PSS, priv, payload)
    known_key.public_key().verify(signature, payload, padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=32),
                                  hashes.SHA256())


def test_verify_rejects_other_salt(provider):
    pub = provider.import_key("spki", known_spki, prov.RSA_PSS, False, {"verify"})
    signature = known_key.sign(payload, padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=20),
                               hashes.SHA256())
    assert not provider.verify(prov.RSA_PSS, pub, signature, payload)


def test_encrypt_decrypt(provider):
    pub = provider.import_key("spki", known_spki, prov.RSA_OAEP, False, {"encrypt"})
    priv = provider.import_key("pkcs8", known_pkcs8, prov.RSA_OAEP, False, {"decrypt"})
    ciphertext = provider.encrypt(prov.RSA_OAEP, pub, payload)
    assert len(ciphertext) == 256
    assert provider.decrypt(prov.RSA_OAEP, priv, ciphertext) == payload


def test_encrypt_interoperates(provider):
    pub = provider.import_key("spki", known_spki, prov.RSA_OAEP, False, {"encrypt"})
    ciphertext = provider.encrypt(prov.RSA_OAEP, pub, payload)
    oaep = padding.OAEP(mgf=padding.MGF1(algorithm=hashes.SHA256()), algorithm=hashes.SHA256(), label=None)
    assert known_key.decrypt(ciphertext, oaep) == payload


def test_encrypt_bound(provider):
    pub = provider.import_key("spki", known_spki, prov.RSA_OAEP, False, {"encrypt"})
    provider.encrypt(prov.RSA_OAEP, pub, b"A" * 190)
    with pytest.raises(pemmican.PlaintextTooLargeError, match="191 bytes exceeds the 190 byte limit"):
        provider.encrypt(prov.RSA_OAEP, pub, b"A" * 191)


def test_decrypt_fails(provider):
    priv = provider.import_key("pkcs8", known_pkcs8, prov.RSA_OAEP, False, {"decrypt"})
    with pytest.raises(pemmican.DecryptionError, match="Decryption error."):
        provider.decrypt(prov.RSA_OAEP, priv, b"\x01" * 256)
    with pytest.raises(pemmican.DecryptionError):
        provider.decrypt(prov.RSA_OAEP, priv, b"\x01" * 16)


def test_operations_check_handles(provider):
    pss_priv = provider.import_key("pkcs8", known_pkcs8, prov.RSA_PSS, False, {"sign"})
    oaep_pub = provider.import_key("spki", known_spki, prov.RSA_OAEP, False, {"encrypt"})
    with pytest.raises(pemmican.KeyUsageError, match="created for RSA-PSS"):
        provider.decrypt(prov.RSA_OAEP, pss_priv, b"\x01" * 256)
    with pytest.raises(pemmican.KeyUsageError, match="does not permit 'verify'"):
        provider.verify(prov.RSA_PSS, pss_priv, b"", payload)
    with pytest.raises(pemmican.KeyUsageError, match="created for RSA-OAEP"):
        provider.sign(prov.RSA_PSS, oaep_pub, payload)


@pytest.mark.parametrize("algorithm, key_size, fits", [
    (prov.RSA_PSS, 512, False),
    (prov.RSA_PSS, 521, False),
    (prov.RSA_PSS, 522, True),
    (prov.RSA_OAEP, 520, False),
    (prov.RSA_OAEP, 521, True),
    (prov.RSA_OAEP, 2048, True),
])
def test_check_key_size(algorithm, key_size, fits):
    if fits:
        prov.check_key_size(algorithm, key_size)
    else:
        with pytest.raises(pemmican.KeyImportError, match="too small"):
            prov.check_key_size(algorithm, key_size)


@pytest.mark.parametrize("fmt, der, keycls, algorithm, usage", [
    ("pkcs8", known_pkcs8, rsa.RSAPrivateKey, prov.RSA_PSS, "sign"),
    ("spki", known_spki, rsa.RSAPublicKey, prov.RSA_PSS, "verify"),
    ("pkcs8", known_pkcs8, rsa.RSAPrivateKey, prov.RSA_OAEP, "decrypt"),
    ("spki", known_spki, rsa.RSAPublicKey, prov.RSA_OAEP, "encrypt"),
])
def test_import_rejects_small_keys(mocker, provider, fmt, der, keycls, algorithm, usage):
    loader = "load_der_private_key" if fmt == "pkcs8" else "load_der_public_key"
    mocker.patch(f"pemmican.provider.serialization.{loader}", return_value=mocker.Mock(spec=keycls, key_size=512))
    with pytest.raises(pemmican.KeyImportError, match="512-bit key is too small"):
        provider.import_key(fmt, der, algorithm, False, {usage})


def test_sign_data_rejects_small_key(mocker):
    mocker.patch("pemmican.provider.serialization.load_der_private_key",
                 return_value=mocker.Mock(spec=rsa.RSAPrivateKey, key_size=512))
    with pytest.raises(pemmican.PemmicanError):
        pemmican.sign_data("hi", pemmican.bytes_to_pem(known_pkcs8, "PRIVATE"))
