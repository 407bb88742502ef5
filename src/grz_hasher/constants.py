"""Constants for buffer sizes, progress reporting, progress bars and HTTP access."""

PACKAGE_ROOT = "grz_hasher"

TQDM_BAR_FORMAT = "{desc} ▕{bar:50}▏ {n_fmt:>10}/{total_fmt:<10} ({rate_fmt:>12}, ETA: {remaining:>6}) {postfix}"
TQDM_DEFAULTS = {
    "bar_format": TQDM_BAR_FORMAT,
    "unit": "iB",
    "unit_scale": True,
    "miniters": 1,
    "smoothing": 0.00001,
    "colour": "cyan",
    "ascii": "░▒█",
}

# Default chunk size for streaming reads
DEFAULT_BUFFER_SIZE = 64 * 1024  # 64 KiB

# Buffer sizes outside this range are clamped
MIN_BUFFER_SIZE = 64  # one MD5/SHA-1/SHA-256 block
MAX_BUFFER_SIZE = 64 * 1024 * 1024  # 64 MiB

# Minimum gap between two progress events, in seconds
DEFAULT_PROGRESS_INTERVAL = 0.5

# Seconds to wait for the worker thread after its terminal event
WORKER_JOIN_TIMEOUT = 5.0

# Timeout for HTTP requests, in seconds
DEFAULT_HTTP_TIMEOUT = 60.0

# Exit status used by the CLI when a computation was stopped
EXIT_INTERRUPTED = 130  # 128 + SIGINT(2)
