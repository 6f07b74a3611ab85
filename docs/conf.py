# Configuration file for the Sphinx documentation builder.
# https://www.sphinx-doc.org/en/master/usage/configuration.html

import os
import sys

sys.path.insert(0, os.path.abspath('..'))

project = 'PyEffectSize'
author = 'PyEffectSize developers'
version = '0.1.0'
release = '0.1.0'

# -- General configuration ---------------------------------------------------

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.napoleon',
    'sphinx.ext.viewcode',
    'sphinx.ext.intersphinx',
]

# Docstrings use Google style (Args / Returns / Raises)
napoleon_google_docstrings = True
napoleon_numpy_docstrings = False
napoleon_include_init_with_doc = True

autodoc_member_order = 'bysource'
autodoc_typehints = 'description'

exclude_patterns = ['_build', 'Thumbs.db', '.DS_Store',
                    '*.md', 'TEACHER.txt']

# -- Options for HTML output -------------------------------------------------

html_theme = 'furo'
html_title = 'PyEffectSize API Reference'

html_theme_options = {
    'light_css_variables': {
        'color-brand-primary': '#2c7fb8',
        'color-brand-content': '#1d5f8a',
    },
    'dark_css_variables': {
        'color-brand-primary': '#41b6c4',
        'color-brand-content': '#2c7fb8',
    },
}

# -- Intersphinx configuration -----------------------------------------------

intersphinx_mapping = {
    'python': ('https://docs.python.org/3', None),
    'numpy': ('https://numpy.org/doc/stable/', None),
    'scipy': ('https://docs.scipy.org/doc/scipy/', None),
    'pandas': ('https://pandas.pydata.org/docs/', None),
}
