from __future__ import annotations

import argparse
import json
from pathlib import Path

from tqdm import tqdm

from ctcbeam.config import decoder_config_from_dict, load_config
from ctcbeam.data.datasets import ProbsCsvDataset, ProbsCsvDatasetConfig
from ctcbeam.decoding.alphabet import Alphabet
from ctcbeam.decoding.beam import best_text, decode_batch
from ctcbeam.decoding.greedy import greedy_search
from ctcbeam.metrics.error_rates import cer_corpus, exact_match_corpus, wer_corpus
from ctcbeam.utils.logger import setup_logging


REPO_ROOT = Path(__file__).resolve().parent


def resolve(path: str) -> Path:
    return Path(path) if Path(path).is_absolute() else (REPO_ROOT / path).resolve()


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--config", type=str, default="configs/default.yaml")
    ap.add_argument("--dataset_csv", type=str, required=True, help="CSV with columns path,text (path -> .npy matrix)")
    vocab_group = ap.add_mutually_exclusive_group(required=True)
    vocab_group.add_argument("--vocab", type=str)
    vocab_group.add_argument("--alphabet", type=str)
    ap.add_argument("--decoder", type=str, default="", choices=["", "greedy", "beam"])
    ap.add_argument("--beam_width", type=int, default=None)
    ap.add_argument("--out_dir", type=str, default="", help="If set, metrics.json is written there")
    args = ap.parse_args()

    cfg = load_config(resolve(args.config))
    setup_logging(cfg.get("logging", {}).get("level", "INFO"))
    eval_cfg = cfg.get("eval", {})
    dcfg = decoder_config_from_dict(cfg.get("decoder"), beam_size=args.beam_width)
    alphabet = Alphabet.from_vocab_file(resolve(args.vocab)) if args.vocab else Alphabet(args.alphabet)

    ds = ProbsCsvDataset(
        ProbsCsvDatasetConfig(
            csv_path=str(resolve(args.dataset_csv)),
            lowercase=bool(eval_cfg.get("lowercase", False)),
        )
    )
    decoder = args.decoder or str(eval_cfg.get("decoder", "beam"))
    num_workers = int(eval_cfg.get("num_workers", 1))

    chunk = 8 * max(1, num_workers)

    preds: list[str] = []
    refs: list[str] = []
    for start in tqdm(range(0, len(ds), chunk), desc=f"eval ({decoder})"):
        samples = [ds[i] for i in range(start, min(start + chunk, len(ds)))]
        if decoder == "beam":
            results = decode_batch([s["probs"] for s in samples], alphabet, dcfg, num_workers=num_workers)
            preds.extend(best_text(hypos) for hypos in results)
        else:
            preds.extend(greedy_search(s["probs"], alphabet).text for s in samples)
        refs.extend(s["text"] for s in samples)

    metrics = {
        "cer": cer_corpus(preds, refs).rate,
        "wer": wer_corpus(preds, refs).rate,
        "exact_match": exact_match_corpus(preds, refs).acc,
        "decoder": decoder,
        "num_samples": len(ds),
        "dataset_csv": args.dataset_csv,
        "decoder_config": dcfg.to_dict(),
    }
    if args.out_dir:
        out_dir = resolve(args.out_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        (out_dir / "metrics.json").write_text(json.dumps(metrics, indent=2))

    print(json.dumps(metrics, indent=2))


if __name__ == "__main__":
    main()
