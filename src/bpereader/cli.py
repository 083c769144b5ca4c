"""Command line front end: decode token id streams and inspect vocabularies."""

import argparse
import logging
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import TextIO

from ._sanitise import render_token
from .exceptions import BPEReaderError
from .loader import load_model_file
from .model import BOS_TOKEN, EOS_TOKEN, PAD_TOKEN, UNK_TOKEN, Model
from .policy import list_space_policies

log = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def format_vocab(model: Model) -> Iterator[str]:
    """
    Yield one human-readable line per token of ``model``.

    Special tokens come first as ``ST [id] <UNK>``. Merged tokens show the
    pieces they were built from: ``[id] [left][right] -> text``.
    """
    specials = model.special_tokens
    for surface, tok in (
        (UNK_TOKEN, specials.unk),
        (PAD_TOKEN, specials.pad),
        (BOS_TOKEN, specials.bos),
        (EOS_TOKEN, specials.eos),
    ):
        if tok >= 0:
            yield f"ST [{tok}] {surface}"

    # later rules overwrite earlier ones with the same result, as in the model
    derivations = {rule.result: rule for rule in model.rules}
    for tok in sorted(model.recipes):
        subword = render_token(model.id_to_token(tok))
        rule = derivations.get(tok)
        if rule is not None:
            left = render_token(model.id_to_token(rule.left))
            right = render_token(model.id_to_token(rule.right))
            yield f"[{tok}] [{left}][{right}] -> {subword}"
        else:
            yield f"[{tok}] {subword}"


def _cmd_decode(args: argparse.Namespace, out: TextIO) -> int:
    model = load_model_file(args.model, args.space_policy)
    if args.input is None:
        result = model.decode_from_stream(sys.stdin)
    else:
        with Path(args.input).open("r", encoding="utf-8") as f:
            result = model.decode_from_stream(f)

    for sentence in result.sentences:
        out.write(sentence + "\n")

    # the stream decoder has already logged the failure
    return 0 if result.ok else 1


def _cmd_vocab(args: argparse.Namespace, out: TextIO) -> int:
    model = load_model_file(args.model, args.space_policy)
    for line in format_vocab(model):
        out.write(line + "\n")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the ``bpereader`` command."""
    # options accepted by every subcommand
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-v", "--verbose", action="store_true", help="enable debug logging"
    )
    common.add_argument(
        "--space-policy",
        choices=list_space_policies(),
        default=None,
        help="how the word-start marker is chosen (default: $BPEREADER_SPACE_POLICY or minimum)",
    )

    parser = argparse.ArgumentParser(
        prog="bpereader", description="Decode BPE token ids back into text."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    decode = sub.add_parser(
        "decode", parents=[common], help="decode one sentence per input line"
    )
    decode.add_argument("model", help="path to the binary model file")
    decode.add_argument(
        "input", nargs="?", default=None, help="token id file (default: stdin)"
    )
    decode.set_defaults(func=_cmd_decode)

    vocab = sub.add_parser("vocab", parents=[common], help="list every token of a model")
    vocab.add_argument("model", help="path to the binary model file")
    vocab.set_defaults(func=_cmd_vocab)

    return parser


def main(argv: list[str] | None = None, out: TextIO | None = None) -> int:
    """Run the command line interface and return the exit status."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
    )
    try:
        return args.func(args, out if out is not None else sys.stdout)
    except BPEReaderError as e:
        log.error(f"{args.command} failed: {e}")
        return 1
    except OSError as e:
        log.error(f"{args.command} failed: cannot read input: {e}")
        return 1
