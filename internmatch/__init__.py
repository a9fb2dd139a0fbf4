"""InternMatch: match a student's resume against internship listings."""

__version__ = "0.1.0"
