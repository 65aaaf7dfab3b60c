"""Awaitable variants of the key operations.

Each coroutine runs its synchronous counterpart in a worker thread, so RSA key generation and private key
operations do not stall the event loop. Cancelling the awaiting task does not interrupt the running call.

Typical usage example:

    pair = await generate_key_pair("encryption")
    ciphertext = await encrypt_with_public_key("Secret message", pair.public_key_pem)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import asyncio

from pemmican import keycrypto
from pemmican.provider import CryptographicProvider


async def generate_key_pair(usage: keycrypto.Usage | str,
                            *,
                            provider: CryptographicProvider | None = None) -> keycrypto.KeyPair:
    return await asyncio.to_thread(keycrypto.generate_key_pair, usage, provider=provider)


async def sign_data(data: str,
                    private_key_pem: str,
                    *,
                    provider: CryptographicProvider | None = None) -> keycrypto.SignatureResult:
    return await asyncio.to_thread(keycrypto.sign_data, data, private_key_pem, provider=provider)


async def verify_signature(data: str,
                           signature_base64: str,
                           public_key_pem: str,
                           *,
                           provider: CryptographicProvider | None = None) -> bool:
    return await asyncio.to_thread(keycrypto.verify_signature,
                                   data,
                                   signature_base64,
                                   public_key_pem,
                                   provider=provider)


async def encrypt_with_public_key(data: str,
                                  public_key_pem: str,
                                  *,
                                  provider: CryptographicProvider | None = None) -> str:
    return await asyncio.to_thread(keycrypto.encrypt_with_public_key, data, public_key_pem, provider=provider)


async def decrypt_with_private_key(encrypted_data: str,
                                   private_key_pem: str,
                                   *,
                                   provider: CryptographicProvider | None = None) -> str:
    return await asyncio.to_thread(keycrypto.decrypt_with_private_key,
                                   encrypted_data,
                                   private_key_pem,
                                   provider=provider)
