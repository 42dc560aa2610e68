"""Display helpers for prices and percentage changes."""

from __future__ import annotations


def format_price(price: float) -> str:
    if price >= 1000:
        return f"${price:,.0f}"
    if price >= 1:
        return f"${price:.2f}"
    if price >= 0.01:
        return f"${price:.4f}"
    return f"${price:.6f}"


def format_change(change_pct: float) -> str:
    arrow = "▲" if change_pct >= 0 else "▼"
    return f"{arrow}{abs(change_pct):5.2f}%"
