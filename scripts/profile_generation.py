from __future__ import annotations

import argparse
import time
import tracemalloc

from streamlines2d import constant_density, default_random_source, generate_streamlines, rotational_field


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--size", type=int, default=400)
    ap.add_argument("--density", type=float, default=0.3)
    ap.add_argument("--numba", action="store_true")
    ap.add_argument("--seed", type=int, default=0)
    args = ap.parse_args()

    tracemalloc.start()
    t0 = time.perf_counter()
    lines = generate_streamlines(
        rotational_field((args.size / 2, args.size / 2)),
        constant_density(args.density),
        args.size,
        args.size,
        rand=default_random_source(args.seed),
        use_numba=bool(args.numba),
    )
    elapsed = time.perf_counter() - t0
    current, peak = tracemalloc.get_traced_memory()
    tracemalloc.stop()
    n_points = sum(len(line) for line in lines)
    print(f"size={args.size} numba={args.numba}: {len(lines)} lines, {n_points} points, "
          f"{elapsed:.2f} s, peak={peak/1e6:.1f} MB")


if __name__ == "__main__":
    main()
