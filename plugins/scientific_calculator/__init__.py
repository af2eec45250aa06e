"""Scientific Calculator plugin manifest."""

manifest = {
    "title": "Scientific Calculator",
    "summary": "Evaluate scientific expressions with degree/radian/gradian modes, memory and last-answer recall.",
    "category": "General Utilities",
    "blueprint": "scientific_calculator",
    "api_prefix": "/api/scientific_calculator",
}

__all__ = ["manifest"]
