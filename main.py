#!/usr/bin/env python3
"""FocusBoard entry point.

Run with:
    python main.py
    python -m focusboard
"""

from focusboard.__main__ import main


if __name__ == "__main__":
    main()
