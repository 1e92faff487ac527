"""Human-readable byte counts for log output."""

_BINARY_UNITS = ("B", "KiB", "MiB", "GiB", "TiB")


def human_bytes(b: int) -> str:
    """
    Format a byte count with binary (1024-based) units.

    Examples:
        >>> human_bytes(512)
        '512 B'
        >>> human_bytes(3 * 1024**3)
        '3.0 GiB'
    """
    value = float(b)
    for unit in _BINARY_UNITS:
        if abs(value) < 1024 or unit == _BINARY_UNITS[-1]:
            if unit == "B":
                return f"{int(value)} B"
            return f"{value:.1f} {unit}"
        value /= 1024
