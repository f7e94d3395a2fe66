"""sitepipe: static-site build pipeline.

Configuration steps register shell commands and page renderers on a Site;
a build then runs the commands, fingerprints assets, mirrors public files
and renders every page into a freshly emptied output directory.
"""

__version__ = "0.1.0"
