"""
Back-office Kernel

Pure domain layer for the financial back-office scheduling engine:
- Typed transaction records and repetition policies
- Exact decimal amounts and percentages
- Typed exceptions with machine-readable codes
- Structured JSON logging
"""

__version__ = "0.1.0"
