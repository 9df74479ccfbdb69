from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from ctcbeam.config import decoder_config_from_dict, load_config
from ctcbeam.decoding.alphabet import Alphabet
from ctcbeam.decoding.beam import ctc_beam_search, rank_hypotheses
from ctcbeam.decoding.rescoring import TimeoutLanguageModel, load_language_model
from ctcbeam.utils.io import load_probs
from ctcbeam.utils.logger import setup_logging


REPO_ROOT = Path(__file__).resolve().parent

logger = logging.getLogger("infer")


def resolve(path: str) -> Path:
    return Path(path) if Path(path).is_absolute() else (REPO_ROOT / path).resolve()


def main() -> None:
    ap = argparse.ArgumentParser(description="Beam search decode one [T,V] matrix.")
    ap.add_argument("--probs", type=str, required=True, help=".npy or .npz with the [T,V] matrix")
    vocab_group = ap.add_mutually_exclusive_group(required=True)
    vocab_group.add_argument("--vocab", type=str, help="vocab.json with idx2char, blank at 0")
    vocab_group.add_argument("--alphabet", type=str, help="Alphabet string, one symbol per character, blank first")
    ap.add_argument("--config", type=str, default="configs/default.yaml")
    ap.add_argument("--beam_width", type=int, default=None)
    ap.add_argument("--domain", type=str, default=None, choices=["prob", "log"])
    ap.add_argument("--lm", type=str, default=None, help="Language model factory as module:attr")
    ap.add_argument("--lm_timeout", type=float, default=None)
    ap.add_argument("--top", type=int, default=5, help="How many ranked hypotheses to print")
    args = ap.parse_args()

    cfg = load_config(resolve(args.config))
    setup_logging(cfg.get("logging", {}).get("level", "INFO"))
    dcfg = decoder_config_from_dict(cfg.get("decoder"), beam_size=args.beam_width, domain=args.domain)

    alphabet = Alphabet.from_vocab_file(resolve(args.vocab)) if args.vocab else Alphabet(args.alphabet)
    probs = load_probs(resolve(args.probs))
    logger.info("decoding %s: T=%d V=%d with %s", args.probs, probs.shape[0], probs.shape[-1], dcfg)

    lm_cfg = cfg.get("lm") or {}
    lm_target = args.lm or lm_cfg.get("target")
    lm = None
    if lm_target:
        lm = load_language_model(lm_target)
        timeout = args.lm_timeout or lm_cfg.get("timeout")
        if timeout:
            lm = TimeoutLanguageModel(lm, float(timeout))

    try:
        hypos = rank_hypotheses(ctc_beam_search(probs, alphabet, dcfg, lm))
    finally:
        if isinstance(lm, TimeoutLanguageModel):
            lm.close()

    out = [
        {"score": h.score, "text": h.text, "last_label": h.last_label}
        for h in hypos[: args.top]
    ]
    print(json.dumps(out, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
