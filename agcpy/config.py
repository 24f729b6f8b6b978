"""
Locating the native AGC engine.

The binding loads ``libagc`` at runtime through cffi. Where it looks is
controlled by keyword arguments or by environment variables:

- ``AGC_LIBRARY``: explicit path to the shared library
- ``GUIX_ENVIRONMENT``: profile prefix; ``$GUIX_ENVIRONMENT/lib/libagc.so`` is tried
- otherwise the system loader search for ``agc``
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List, Optional

from .constants import (
    ENV_GUIX_ENVIRONMENT,
    ENV_LIBRARY_PATH,
    LIBRARY_FILENAME,
    LIBRARY_NAME,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LibraryConfig:
    """Where to load libagc from.

    Attributes:
        library_path: Explicit shared library path; tried first when set
        guix_environment: Profile prefix containing ``lib/libagc.so``
        library_name: Name handed to the system loader as a last resort
    """

    library_path: Optional[str] = None
    guix_environment: Optional[str] = None
    library_name: str = LIBRARY_NAME

    @classmethod
    def from_env(cls) -> LibraryConfig:
        """Load configuration from environment variables."""
        return cls(
            library_path=os.getenv(ENV_LIBRARY_PATH) or None,
            guix_environment=os.getenv(ENV_GUIX_ENVIRONMENT) or None,
        )

    def candidates(self) -> List[str]:
        """Library names/paths to try, in order."""
        out: List[str] = []
        if self.library_path:
            out.append(self.library_path)
        if self.guix_environment:
            out.append(os.path.join(self.guix_environment, "lib", LIBRARY_FILENAME))
        out.append(self.library_name)
        logger.debug("libagc candidates: %s", out)
        return out
