# Sphinx configuration for the clawkitchen-workflows API reference.

import os
import sys

sys.path.insert(0, os.path.abspath('../src'))

from clawkitchen_workflows import __version__  # noqa: E402

project = 'ClawKitchen Workflow Runs'
author = 'ClawKitchen'
release = __version__

# Google-style "Raises:" sections and annotated signatures.
extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.napoleon',
    'sphinx_autodoc_typehints',
]

exclude_patterns = ['_build']

html_theme = 'sphinx_rtd_theme'

autodoc_default_options = {
    'members': True,
    'member-order': 'bysource',
}

napoleon_google_docstring = True
napoleon_numpy_docstring = False
