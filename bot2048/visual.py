from __future__ import annotations
import argparse, re, os
import matplotlib.pyplot as plt
from typing import List, Tuple

# L<level>: score mean=<f>, median=<f>, IQR=[<f>, <f>], winRate2048=<f>%
PATTERN = re.compile(r"^L(\d+):\s+score mean=([-+eE0-9\.]+),\s+median=([-+eE0-9\.]+),\s+IQR=\[([-+eE0-9\.]+),\s+([-+eE0-9\.]+)\],\s+winRate2048=([-+eE0-9\.]+)%$")

Row = Tuple[int, float, float, float, float, float]

def parse_log(path: str) -> List[Row]:
	"""Level rows from a calibration log; a later run of the same level wins."""
	rows = {}
	with open(path, 'r', encoding='utf-8') as f:
		for line in f:
			m = PATTERN.match(line.strip())
			if not m:
				continue
			lvl, mean, median, p25, p75, win = m.groups()
			rows[int(lvl)] = (int(lvl), float(mean), float(median), float(p25), float(p75), float(win))
	return [rows[k] for k in sorted(rows)]

def main():
	ap = argparse.ArgumentParser()
	ap.add_argument('--log', type=str, required=True, help='calibration log (python -m bot2048.calibrate --log ...)')
	ap.add_argument('--out', type=str, default=None, help='optional image path, e.g. logs/levels.png')
	ap.add_argument('--title', type=str, default='Score by difficulty level')
	args = ap.parse_args()

	if not os.path.isfile(args.log):
		raise FileNotFoundError(args.log)
	rows = parse_log(args.log)
	if not rows:
		raise RuntimeError('Log lines must match: L<n>: score mean=..., median=..., IQR=[..., ...], winRate2048=...%')

	levels = [r[0] for r in rows]
	mean = [r[1] for r in rows]
	median = [r[2] for r in rows]
	p25 = [r[3] for r in rows]
	p75 = [r[4] for r in rows]
	win = [r[5] for r in rows]

	fig, ax = plt.subplots(figsize=(8, 5))
	ax.fill_between(levels, p25, p75, color='#1f77b4', alpha=0.2, label='IQR')
	ax.plot(levels, mean, marker='o', color='#1f77b4', label='Mean score')
	ax.plot(levels, median, linestyle='--', color='#ff7f0e', label='Median score')
	ax.set_xlabel('Level')
	ax.set_ylabel('Final score')
	ax.set_xticks(levels)
	ax.grid(True, alpha=0.3)
	ax2 = ax.twinx()
	ax2.plot(levels, win, marker='s', color='#2ca02c', alpha=0.7, label='Win rate (2048)')
	ax2.set_ylabel('Win rate %')
	ax2.set_ylim(0, 100)
	h1, l1 = ax.get_legend_handles_labels()
	h2, l2 = ax2.get_legend_handles_labels()
	ax.legend(h1 + h2, l1 + l2, loc='upper left')
	ax.set_title(args.title)
	fig.tight_layout()
	if args.out:
		out_dir = os.path.dirname(args.out)
		if out_dir:
			os.makedirs(out_dir, exist_ok=True)
		fig.savefig(args.out, dpi=160)
		print(f'Saved figure to {args.out}')
	else:
		plt.show()

if __name__ == '__main__':
	main()
