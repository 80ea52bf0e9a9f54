"""
nvim-time-machine — point-in-time capsules of your Neovim state.

Packs the Neovim data, config and cache directories into a single
zip "capsule" and restores them later, moving whatever is already
in place out of the way first.
"""

__version__ = "0.1.0"

# Directories captured in every capsule, relative to the home directory
SOURCE_DIRS = (
    ".local/share/nvim",
    ".config/nvim",
    ".cache/nvim",
)

CAPSULE_DIRNAME = ".nvim_capsules"
CAPSULE_PREFIX = "nvim_backup_"
CAPSULE_SUFFIX = ".zip"
PARTIAL_SUFFIX = ".partial"

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"
