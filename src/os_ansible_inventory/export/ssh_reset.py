from __future__ import annotations

import shlex
from pathlib import Path
from typing import List, Optional

from ..normalize.schema import Inventory, hostname_for
from ..util.errors import ExportError

SCRIPT_FILE_MODE = 0o755
SHEBANG = "#!/bin/bash"
KNOWN_HOSTS = '"$HOME/.ssh/known_hosts"'


def _remove_line(value: str) -> str:
    return f"ssh-keygen -f {KNOWN_HOSTS} -R {shlex.quote(value)}"


def render_ssh_reset_script(inventory: Inventory, dns_domain: Optional[str] = None) -> str:
    """
    Shell script that drops stale known_hosts entries for every inventory host:

        #!/bin/bash
        ssh-keygen -f "$HOME/.ssh/known_hosts" -R 10.0.0.5
        ssh-keygen -f "$HOME/.ssh/known_hosts" -R web1.example.com

    Useful after servers are rebuilt and come back with new host keys.
    """
    lines: List[str] = [SHEBANG]
    for name in sorted(inventory.hosts):
        host = inventory.hosts[name]
        lines.append(_remove_line(host.address))
        lines.append(_remove_line(hostname_for(host, dns_domain)))
    return "\n".join(lines) + "\n"


def write_ssh_reset_script(inventory: Inventory, path: Path, dns_domain: Optional[str] = None) -> str:
    script = render_ssh_reset_script(inventory, dns_domain)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(script, encoding="utf-8")
        path.chmod(SCRIPT_FILE_MODE)
    except OSError as e:
        raise ExportError(f"Failed to write reset script {path}: {e}") from e
    return script
