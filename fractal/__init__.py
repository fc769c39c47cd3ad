"""Fractal

Browse a web that does not exist: every page is generated by an LLM on demand.
"""

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("fractal-browser")
except PackageNotFoundError:
    # Fallback for source checkouts that were never installed
    __version__ = "0.0.1"
__author__ = "Fractal"
