from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..logging_utils import TRACE
from .command import run_cmd
from .pkg import AptPackageManager

logger = logging.getLogger(__name__)

# checkinstall "installs" whatever `make install` installs; ours installs nothing.
_MAKEFILE = "install:\n\t@true\n"


@dataclass
class PlaceholderPackageBuilder:
    """Build and install an empty .deb that only satisfies a dependency.

    The build tool is a build-time dependency: it is installed, used and
    purged again inside `provide()`.
    """

    apt: AptPackageManager
    package_name: str
    description: str
    version: str = "1"
    maintainer: str = "Nobody"
    group: str = "mail"
    tool: str = "checkinstall"
    work_dir: Optional[str] = None
    timeout: Optional[float] = None

    def install_tool(self) -> None:
        self.apt.install([self.tool])

    def build_and_install(self) -> None:
        with tempfile.TemporaryDirectory(prefix="placeholder-", dir=self.work_dir) as tmp:
            (Path(tmp) / "Makefile").write_text(_MAKEFILE, encoding="utf-8")
            (Path(tmp) / "description-pak").write_text(self.description + "\n", encoding="utf-8")
            run_cmd(
                [
                    self.tool,
                    "-y",
                    "--install=yes",
                    f"--pkgname={self.package_name}",
                    f"--pkgversion={self.version}",
                    f"--maintainer={self.maintainer}",
                    f"--pkggroup={self.group}",
                ],
                cwd=tmp,
                timeout=self.timeout,
            )
        logger.debug("Installed placeholder package %s=%s", self.package_name, self.version)

    def uninstall_tool(self) -> None:
        self.apt.purge([self.tool])
        self.apt.autoremove()

    def provide(self) -> None:
        logger.log(TRACE, "Creating placeholder package %s", self.package_name)
        self.install_tool()
        self.build_and_install()
        self.uninstall_tool()
