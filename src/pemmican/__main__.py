"""The Command Line Interface for Pemmican, including Interactive elements.

A hybrid CLI/ICLI (Command Line Interface/Interactive Command Line Interface): every argument missing from the
command line is asked for interactively, unless non-interactive mode is on, in which case defaults are used or the
run is aborted.

Typical usage example:

    pemmican keygen --usage signing -p key.pub -P key
    OR
    python -m pemmican
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import argparse
import logging
import pathlib
import sys
import typing

import pemmican


class HelpData(typing.NamedTuple):
    description: str
    format: typing.Type = str
    choices: list[str] | None = None
    default: typing.Any = None


help_dict: dict[str, HelpData] = {
    "subcommand":
        HelpData(
            description="The available subcommands in Pemmican.",
            choices=["keygen", "encrypt", "decrypt", "sign", "verify"],
        ),
    "keygen":
        HelpData("Key pair generation utility."),
    "encrypt":
        HelpData("RSA-OAEP encryption utility."),
    "decrypt":
        HelpData("RSA-OAEP decryption utility."),
    "sign":
        HelpData("RSA-PSS signing utility."),
    "verify":
        HelpData("RSA-PSS signature verification utility."),
    "encryption":
        HelpData("RSA-OAEP key pair, for encrypt and decrypt."),
    "signing":
        HelpData("RSA-PSS key pair, for sign and verify."),
    "usage":
        HelpData(
            description="What the key pair will be used for.",
            choices=["signing", "encryption"],
            default="signing",
        ),
    "public_key":
        HelpData(
            description="Location of the public key PEM file.",
            format=pathlib.Path,
        ),
    "private_key":
        HelpData(
            description="Location of the private key PEM file.",
            format=pathlib.Path,
        ),
    "message":
        HelpData(
            description="Message or path to file containing payload. If Path start with `P:`",
            format=str,
        ),
    "signature":
        HelpData(
            description="The base64 signature to validate against the payload and public key.",
            format=str,
        ),
    "overwrite":
        HelpData(
            description="Overwrite specified destination files if they exist?",
            choices=["Y", "N"],
            default="N",
        )
}

needs = {
    "keygen": ("usage", "public_key", "private_key"),
    "encrypt": ("public_key", "message"),
    "decrypt": ("private_key", "message"),
    "sign": ("private_key", "message"),
    "verify": ("public_key", "message", "signature")
}

pubkey = argparse.ArgumentParser(add_help=False)
pubkey.add_argument("--public_key", "-p", type=help_dict["public_key"].format, help=help_dict["public_key"].description)
privkey = argparse.ArgumentParser(add_help=False)
privkey.add_argument("--private_key",
                     "-P",
                     type=help_dict["private_key"].format,
                     help=help_dict["private_key"].description)
payloads = argparse.ArgumentParser(add_help=False)
payloads.add_argument("--message", "-m", type=help_dict["message"].format, help=help_dict["message"].description)
corep = argparse.ArgumentParser(prog="pemmican")
corep.add_argument("--version", "-v", action="version", version=f"%(prog)s {pemmican.__version__}")
corep.add_argument("--non-interactive", "-n", action="store_true", help="Enable non-interactive mode")
corep.add_argument("--verbose", "-V", action="store_true", help="Enable debug logging")
commands = corep.add_subparsers(dest="subcommand", title="Subcommands")

keygen = commands.add_parser("keygen", parents=[privkey, pubkey], help=help_dict["keygen"].description)
keygen.add_argument("--usage", "-u", choices=help_dict["usage"].choices, help=help_dict["usage"].description)
keygen.add_argument("--overwrite", "-o", action="store_const", const="Y", help=help_dict["overwrite"].description)

encrypt = commands.add_parser("encrypt", parents=[pubkey, payloads], help=help_dict["encrypt"].description)
decrypt = commands.add_parser("decrypt", parents=[privkey, payloads], help=help_dict["decrypt"].description)
sign = commands.add_parser("sign", parents=[privkey, payloads], help=help_dict["sign"].description)
verify = commands.add_parser("verify", parents=[pubkey, payloads], help=help_dict["verify"].description)
verify.add_argument("--signature", "-S", type=help_dict["signature"].format, help=help_dict["signature"].description)


def checkmodes(arg: str, non_interactive: bool):
    helper_data = help_dict[arg]
    if non_interactive and helper_data.default:
        return helper_data.default
    if non_interactive:
        raise IOError(f"Argument {arg} is missing and non-interactive mode is active.")
    return helper_data


def choice_handler(arg: str, non_interactive: bool, prntr: typing.Callable = print):
    helper_data = checkmodes(arg, non_interactive)
    if not isinstance(helper_data, HelpData):
        return helper_data
    prntr(f"Please specify the {arg}!")
    prntr(f"Description: {helper_data.description}")
    choices = helper_data.choices
    vald = set(choices)
    for choice in choices:
        defstring = " (Default)" if choice == helper_data.default else ""
        if help_dict.get(choice, None):
            prntr(f"{choice} - {help_dict[choice].description}" + defstring)
        else:
            prntr(f"{choice}" + defstring)
    if helper_data.default is not None:
        prntr("To accept default just click enter. Otherwise specify value.")
    while True:
        ch = input(f"{arg}: ")
        if ch in vald:
            return ch
        if not ch and helper_data.default is not None:
            return helper_data.default
        prntr("Please select an option from the list.")


def input_handler(arg: str, non_interactive: bool, prntr: typing.Callable = print):
    helper_data = checkmodes(arg, non_interactive)
    if not isinstance(helper_data, HelpData):
        return helper_data
    prntr(f"Please specify the {arg}!")
    prntr("Description: " + helper_data.description)
    if helper_data.default is not None:
        prntr(f"Default value: {helper_data.default}")
        prntr("To accept default just click enter. Otherwise specify value.")
    cls = helper_data.format
    while True:
        ch = input(f"{arg}: ")
        if not ch and helper_data.default is not None:
            return helper_data.default
        if ch == "":
            prntr("Please provide a value.")
            continue
        try:
            return cls(ch)
        except ValueError:
            prntr(f"We could not convert your value to {cls.__name__}.")


def check_message(mess: str) -> str:
    """Parse message for path-notice."""
    if mess.startswith("P:"):
        mess = mess[2:]
        with open(mess, "r", encoding="utf-8") as f:
            mess = f.read()
    return mess


def execute(args: argparse.Namespace, non_interactive: bool, pspr: typing.Callable) -> int:
    """Runs the selected subcommand with fully populated arguments.

    Returns:
        The process exit status.
    """
    match args.subcommand:
        case "keygen":
            if args.private_key.exists() or args.public_key.exists():
                rs = getattr(args, "overwrite", None)
                if rs is None:
                    rs = choice_handler("overwrite", non_interactive, pspr)
                if rs == "N":
                    print("Destination private or public key already exists!")
                    return 1
            pair = pemmican.generate_key_pair(args.usage)
            pair.export(args.private_key, args.public_key)
            pspr(f"\n{args.usage.capitalize()} key pair generated!")
        case "encrypt":
            pub = pemmican.read_pem(args.public_key, "PUBLIC")
            ciph = pemmican.encrypt_with_public_key(check_message(args.message), pub)
            pspr("Ciphertext:")
            print(ciph)
        case "decrypt":
            priv = pemmican.read_pem(args.private_key, "PRIVATE")
            clear = pemmican.decrypt_with_private_key(check_message(args.message).strip(), priv)
            pspr("Cleartext:")
            print(clear)
        case "sign":
            priv = pemmican.read_pem(args.private_key, "PRIVATE")
            result = pemmican.sign_data(check_message(args.message), priv)
            pspr("Signature:")
            print(result.signature_base64)
            pspr(f"Signed at: {result.timestamp_iso}")
        case "verify":
            pub = pemmican.read_pem(args.public_key, "PUBLIC")
            if pemmican.verify_signature(check_message(args.message), args.signature, pub):
                pspr("Signature Verified!")
            else:
                print("Signature Verification Failed!")
                return 1
    return 0


def main():
    """Core Hybrid CLI/ICLI (Command Line Interface/Interactive Command Line Interface)"""
    args = corep.parse_args()
    non_interactive = args.non_interactive
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    def pspr(text: str):
        """Print only if not in non-interactive mode."""
        if not non_interactive:
            print(text)

    pspr("Welcome to Pemmican!\n")
    if not args.subcommand:
        args.subcommand = choice_handler("subcommand", non_interactive)
    for reqs in needs[args.subcommand]:
        if getattr(args, reqs, None) is None:
            if help_dict[reqs].choices is not None:
                res = choice_handler(reqs, non_interactive)
            else:
                res = input_handler(reqs, non_interactive)
            setattr(args, reqs, res)
        else:
            pspr(f"{reqs}: {getattr(args, reqs)}")
    pspr("\nInput Complete! Executing...")
    try:
        status = execute(args, non_interactive, pspr)
    except pemmican.PemmicanError as err:
        print(f"Error: {err}", file=sys.stderr)
        sys.exit(2)
    if status:
        sys.exit(status)
    pspr("Thank you for using Pemmican!")
    pspr("Goodbye!")


if __name__ == "__main__":
    main()
