# Jacob Mitchell, Kyle Axtell
# CS 456 - Data Compression
# experiments.py
# 10/18/26

"""
Benchmark: tree-header Huffman codec vs zlib baseline

Runs repeated experiments over synthetic datasets and records how the codec
behaves (size, header overhead, code length vs entropy, timing)

Outputs (in --outdir):
  - metrics.csv     (raw row per run per pipeline)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --exp1_size_kb 64 --exp2_max_kb 512
  python experiments.py --outdir results --exp1_generators uniform256,zipf128,english_like

Notes:
  the pure Python codec is slow on multi-megabyte inputs, keep --exp2_max_kb small
"""

from __future__ import annotations

import argparse
import csv
import io
import math
import random
import statistics
import time
import zlib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Dict, List, Tuple, Callable

import matplotlib.pyplot as plt

import huffman as huff
from bitio import BitInputStream

PIPELINES = ("huffman", "zlib")


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)

def shannon_entropy(data: bytes) -> float:
    """
    Bits per byte of an ideal order-0 coder, the lower bound for any Huffman code
    """
    if not data:
        return 0.0
    n = len(data)
    counts: Dict[int, int] = {}
    for b in data:
        counts[b] = counts.get(b, 0) + 1
    return -sum((c / n) * math.log2(c / n) for c in counts.values())


# Synthetic dataset generators

def _cdf(weights: List[float]) -> List[float]:
    total = sum(weights)
    out = []
    acc = 0.0
    for w in weights:
        acc += w / total
        out.append(acc)
    return out

def _sample(rng: random.Random, cdf: List[float]) -> int:
    # binary search for the first bucket whose cumulative probability covers r
    r = rng.random()
    lo, hi = 0, len(cdf) - 1
    while lo < hi:
        mid = (lo + hi) // 2
        if r <= cdf[mid]:
            hi = mid
        else:
            lo = mid + 1
    return lo

def gen_uniform(size: int, alphabet: int = 256, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    return bytes(rng.randrange(alphabet) for _ in range(size))

def gen_repetitive(size: int, dominant: int = ord('A'), dom_frac: float = 0.90, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    others = [i for i in range(256) if i != dominant]
    return bytes(dominant if rng.random() < dom_frac else rng.choice(others) for _ in range(size))

def gen_zipf_like(size: int, alphabet: int = 128, s: float = 1.2, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    cdf = _cdf([1.0 / ((i + 1) ** s) for i in range(alphabet)])
    return bytes(_sample(rng, cdf) for _ in range(size))

def gen_english_like(size: int, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    chars = " etaoinshrdlcumwfgypbvkjxqETAOINSHRDLCUMWFGYPBVKJXQ\n"

    def weight(ch: str) -> float:
        if ch == ' ':
            return 13.0
        if ch == '\n':
            return 1.5
        if ch.lower() in "etaoinshrdlu":
            return 6.0
        if ch.lower() in "cmfwgypbvk":
            return 2.5
        return 1.2

    cdf = _cdf([weight(ch) for ch in chars])
    return bytes(ord(chars[_sample(rng, cdf)]) for _ in range(size))

def gen_single_symbol(size: int, seed: int = 0) -> bytes:
    return bytes([seed % 256]) * size

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], bytes]] = {
    "uniform256": lambda size, seed: gen_uniform(size, alphabet=256, seed=seed),
    "uniform16": lambda size, seed: gen_uniform(size, alphabet=16, seed=seed),
    "zipf128": lambda size, seed: gen_zipf_like(size, alphabet=128, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.90, seed=seed),
    "repetitive99": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.99, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
    "single": lambda size, seed: gen_single_symbol(size, seed=seed),
}

def generate_dataset(name: str, size_bytes: int, seed: int) -> Tuple[str, bytes]:
    """
    Unknown dataset names fall back to uniform256 so a typo does not kill a long run
    """
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        return f"{name}_fallback_uniform256", gen_uniform(size_bytes, alphabet=256, seed=seed)
    return name, fn(size_bytes, seed)


# Experiment runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    file_size_bytes: int
    run_id: int
    pipeline: str  # "huffman" or "zlib"
    unique_symbols: int

    build_ms: float   # huffman: count + tree + code table; zlib: 0
    encode_ms: float
    decode_ms: float
    total_ms: float

    compressed_bytes: int
    header_bits: int
    compression_ratio: float
    avg_code_bits: float   # payload bits per input byte
    entropy_bits: float
    correctness_ok: int  # 1 or 0


def _huffman_build(data: bytes):
    freqs = huff.read_for_counts(BitInputStream(io.BytesIO(data)))
    root = huff.make_tree_from_counts(freqs)
    return freqs, root, huff.make_codings_from_tree(root)


def run_one(data: bytes, pipeline: str) -> MetricRow:
    header_bits = 0
    avg_code_bits = 0.0
    build_ms = 0.0

    if pipeline == "huffman":
        t0 = now_ns()
        freqs, root, codings = _huffman_build(data)
        t1 = now_ns()
        build_ms = ns_to_ms(t1 - t0)
        header_bits = huff.header_size_bits(root)
        payload_bits = sum(freqs[s] * codings[s][1] for s in codings if s != huff.PSEUDO_EOF)
        avg_code_bits = payload_bits / max(1, len(data))

        # compress_bytes repeats the count, so encode time covers both passes
        t2 = now_ns()
        packed = huff.compress_bytes(data)
        t3 = now_ns()
        encode_ms = ns_to_ms(t3 - t2)

        t4 = now_ns()
        decoded = huff.decompress_bytes(packed)
        t5 = now_ns()
        decode_ms = ns_to_ms(t5 - t4)

    elif pipeline == "zlib":
        t2 = now_ns()
        packed = zlib.compress(data, 9)
        t3 = now_ns()
        encode_ms = ns_to_ms(t3 - t2)

        t4 = now_ns()
        decoded = zlib.decompress(packed)
        t5 = now_ns()
        decode_ms = ns_to_ms(t5 - t4)
    else:
        raise ValueError(f"pipeline must be one of {PIPELINES}")

    return MetricRow(
        exp_name="",
        dataset_name="",
        file_size_bytes=len(data),
        run_id=0,
        pipeline=pipeline,
        unique_symbols=len(set(data)),
        build_ms=build_ms,
        encode_ms=encode_ms,
        decode_ms=decode_ms,
        total_ms=build_ms + encode_ms + decode_ms,
        compressed_bytes=len(packed),
        header_bits=header_bits,
        compression_ratio=len(packed) / max(1, len(data)),
        avg_code_bits=avg_code_bits,
        entropy_bits=shannon_entropy(data),
        correctness_ok=1 if decoded == data else 0,
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    names = [f.name for f in fields(MetricRow)]
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=names)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in names})


SUMMARY_METRICS = ("compression_ratio", "encode_ms", "decode_ms", "build_ms", "total_ms",
                   "avg_code_bits", "header_bits")

def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)

def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by exp_name, dataset_name, file_size_bytes, pipeline and compute mean/stdev
    """
    key_to: Dict[Tuple[str, str, int, str], List[MetricRow]] = {}
    for r in rows:
        key = (r.exp_name, r.dataset_name, r.file_size_bytes, r.pipeline)
        key_to.setdefault(key, []).append(r)

    summary_fields = ["exp_name", "dataset_name", "file_size_bytes", "pipeline", "n_runs"]
    for m in SUMMARY_METRICS:
        summary_fields += [f"{m}_mean", f"{m}_stdev"]
    summary_fields.append("correctness_ok_rate")

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for key, items in sorted(key_to.items()):
            exp_name, dataset_name, size_b, pipeline = key
            out = {
                "exp_name": exp_name,
                "dataset_name": dataset_name,
                "file_size_bytes": size_b,
                "pipeline": pipeline,
                "n_runs": len(items),
                "correctness_ok_rate": sum(x.correctness_ok for x in items) / len(items),
            }
            for m in SUMMARY_METRICS:
                out[f"{m}_mean"], out[f"{m}_stdev"] = mean_stdev([getattr(x, m) for x in items])
            w.writerow(out)


# Plotting

def _save(outdir: Path, name: str) -> None:
    plt.legend()
    plt.tight_layout()
    plt.savefig(outdir / name, dpi=200)
    plt.close()


def plot_experiment_1(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp1_distribution"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))
    x = list(range(len(datasets)))

    def mean_for(dataset: str, pipeline: str, field: str) -> float:
        vals = [getattr(r, field) for r in exp_rows if r.dataset_name == dataset and r.pipeline == pipeline]
        return statistics.mean(vals) if vals else float("nan")

    for field, ylabel, title, name in (
        ("compression_ratio", "Compressed Bytes / Original Bytes",
         "Experiment 1: Compression Ratio by Distribution", "exp1_compression_ratio.png"),
        ("encode_ms", "Encode Time (ms)", "Experiment 1: Encode Time by Distribution", "exp1_encode_time.png"),
    ):
        plt.figure()
        for p in PIPELINES:
            plt.plot(x, [mean_for(d, p, field) for d in datasets], marker="o", label=p)
        plt.xticks(x, datasets, rotation=20, ha="right")
        plt.ylabel(ylabel)
        plt.title(title)
        _save(outdir, name)

    # how close the codes get to the entropy bound
    plt.figure()
    plt.plot(x, [mean_for(d, "huffman", "avg_code_bits") for d in datasets], marker="o", label="huffman code bits")
    plt.plot(x, [mean_for(d, "huffman", "entropy_bits") for d in datasets], marker="x", label="entropy")
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Bits per Input Byte")
    plt.title("Experiment 1: Average Code Length vs Entropy")
    _save(outdir, "exp1_code_length.png")


def plot_experiment_2(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp2_size_scaling"]
    if not exp_rows:
        return

    for dist in sorted(set(r.dataset_name for r in exp_rows)):
        dist_rows = [r for r in exp_rows if r.dataset_name == dist]
        sizes = sorted(set(r.file_size_bytes for r in dist_rows))

        def mean_size(size: int, pipeline: str, field: str) -> float:
            vals = [getattr(r, field) for r in dist_rows if r.file_size_bytes == size and r.pipeline == pipeline]
            return statistics.mean(vals) if vals else float("nan")

        for field, ylabel, label, name in (
            ("total_ms", "Total Time (ms) (build + encode + decode)", "Total Runtime", "exp2_total_time"),
            ("compression_ratio", "Compressed Bytes / Original Bytes", "Compression Ratio", "exp2_compression_ratio"),
        ):
            plt.figure()
            for p in PIPELINES:
                plt.plot(sizes, [mean_size(s, p, field) for s in sizes], marker="o", label=p)
            plt.xscale("log", base=2)
            plt.xlabel("File Size (bytes)")
            plt.ylabel(ylabel)
            plt.title(f"Experiment 2: {label} vs Size ({dist})")
            _save(outdir, f"{name}_{dist}.png")


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def size_ladder(min_bytes: int, max_bytes: int) -> List[int]:
    sizes: List[int] = []
    s = min_bytes
    while s <= max_bytes:
        sizes.append(s)
        s *= 2
    return sizes

def run_experiments(args: argparse.Namespace) -> List[MetricRow]:
    rows: List[MetricRow] = []

    def record(exp_name: str, gen_name: str, size_b: int, seed: int, run_id: int) -> None:
        dataset_name, data = generate_dataset(gen_name, size_b, seed)
        for pipeline in PIPELINES:
            row = run_one(data, pipeline)
            row.exp_name = exp_name
            row.dataset_name = dataset_name
            row.run_id = run_id
            rows.append(row)

    # Experiment 1: distributions (fixed size)
    if not args.no_exp1:
        fixed_size = max(1, args.exp1_size_kb) * 1024
        for gen_name in parse_csv_list(args.exp1_generators):
            for run_id in range(1, args.runs + 1):
                record("exp1_distribution", gen_name, fixed_size, args.seed + run_id, run_id)

    # Experiment 2: size scaling (powers of 2)
    if not args.no_exp2:
        sizes = size_ladder(max(1, args.exp2_min_kb) * 1024, max(1, args.exp2_max_kb) * 1024)
        for gen_name in parse_csv_list(args.exp2_generators):
            for size_b in sizes:
                for run_id in range(1, args.runs + 1):
                    record("exp2_size_scaling", gen_name, size_b, args.seed + 10_000 + size_b + run_id, run_id)

    return rows

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser()
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")

    ap.add_argument("--no_exp1", action="store_true", help="Disable experiment 1 (distribution)")
    ap.add_argument("--no_exp2", action="store_true", help="Disable experiment 2 (size scaling)")

    ap.add_argument("--exp1_size_kb", type=int, default=64, help="Experiment 1 fixed file size in KB")
    ap.add_argument("--exp1_generators", type=str, default="uniform256,zipf128,repetitive90,english_like,single",
                    help="Comma-separated dataset generator names for experiment 1")

    ap.add_argument("--exp2_min_kb", type=int, default=4, help="Experiment 2 min size in KB (power-of-two growth)")
    ap.add_argument("--exp2_max_kb", type=int, default=256, help="Experiment 2 max size in KB (power-of-two growth)")
    ap.add_argument("--exp2_generators", type=str, default="uniform256,zipf128,repetitive90",
                    help="Comma-separated dataset generator names for experiment 2")
    return ap

def main() -> int:
    args = build_parser().parse_args()

    outdir = Path(args.outdir)
    safe_mkdir(outdir)

    rows = run_experiments(args)

    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    plot_experiment_1(rows, outdir)
    plot_experiment_2(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Correctness rate across all runs: {ok_rate:.3f}")
    print("Charts saved in:", outdir.resolve())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
