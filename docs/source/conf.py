"""Sphinx configuration for Capital Allocation documentation."""

import os
import sys

sys.path.insert(0, os.path.abspath("../.."))

project = "Capital Allocation"
author = "Capital Allocation contributors"
extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.mathjax",
    "myst_parser",
    "nbsphinx",
]

source_suffix = {
    ".rst": "restructuredtext",
    ".md": "markdown",
}
templates_path = ["_templates"]
exclude_patterns = ["build"]
html_theme = "sphinx_rtd_theme"
html_theme_options = {
    "navigation_depth": 2,
}

nbsphinx_execute = "never"
