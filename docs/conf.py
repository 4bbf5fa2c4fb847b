import os
import sys

# Add the project root (one level up from docs/) to sys.path
sys.path.insert(0, os.path.abspath(".."))

from citrex_sdk import get_version

# -- Project information -----------------------------------------------------

project = "citrex_sdk"
copyright = "2024, Citrex Engineering Team"
author = "Citrex Engineering Team"

release = get_version()
if "unknown" in release:
    raise RuntimeError(f"Unknown version {release=}")

# -- General configuration ---------------------------------------------------
extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.viewcode",
]

# Napoleon settings
napoleon_google_docstring = True
napoleon_numpy_docstring = False

# Suppress warnings for duplicate cross-references (classes exported from multiple modules)
suppress_warnings = ["ref.python"]

## Templates
templates_path = ["_templates"]
exclude_patterns = ["_build", "Thumbs.db", ".DS_Store"]

## Html
html_theme = "sphinx_rtd_theme"
html_static_path = ["_static"]

# Rendering
autodoc_default_options = {
    "members": True,
    "undoc-members": True,
    "show-inheritance": True,
}


extensions.append("sphinx.ext.intersphinx")

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "web3": ("https://web3py.readthedocs.io/en/stable", None),
}
