"""Insight generation package."""

from drawer.insights.generator import days_until, format_money, generate_insight

__all__ = ["days_until", "format_money", "generate_insight"]
