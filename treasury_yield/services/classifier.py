from __future__ import annotations


def is_native_asset(symbol: str, ticker: str) -> bool:
    """Heuristic: does the pool symbol denote the native asset or a liquid-staking derivative of it?

    Matches the bare ticker, hyphen-joined pairs ("apt-usdc", "usdc-apt") and the
    "st<ticker>" / "liquid-staked-<ticker>" derivative names. Unlisted derivative
    naming schemes are not recognised.
    """
    s = (symbol or "").lower()
    t = ticker.lower()
    return (
        s == t
        or f"{t}-" in s
        or f"-{t}" in s
        or f"st{t}" in s
        or f"liquid-staked-{t}" in s
    )
