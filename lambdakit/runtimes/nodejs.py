from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from lambdakit.models.function import FunctionSpec
from lambdakit.runtimes.base import RuntimeBase
from lambdakit.services.errors import RuntimeCommandError

logger = logging.getLogger(__name__)

_HANDLER_TEMPLATE = """'use strict';

module.exports.handler = function(event, context, cb) {
  return cb(null, {
    message: 'Your function executed successfully!'
  });
};
"""

_INVOKE_SCRIPT = """
const handler = require(process.argv[1])[process.argv[2]];
const event = JSON.parse(process.argv[3]);
const done = (err, result) => {
  if (err) { console.error(String(err)); process.exit(1); }
  process.stdout.write(JSON.stringify(result === undefined ? null : result));
};
const ret = handler(event, { done: done, succeed: (r) => done(null, r), fail: (e) => done(e) }, done);
if (ret && typeof ret.then === 'function') { ret.then((r) => done(null, r), done); }
"""


class NodeJsRuntime(RuntimeBase):
    def __init__(self, *, project_root: Path, name: str = "nodejs") -> None:
        super().__init__(name, project_root=project_root)

    async def scaffold(self, function: FunctionSpec) -> None:
        self._write_if_missing(function.root_path / "handler.js", _HANDLER_TEMPLATE)
        self._write_if_missing(function.root_path / "event.json", "{}\n")

    async def install_dependencies(self, directory: Path) -> None:
        if not (directory / "package.json").exists():
            logger.debug("No package.json in %s; nothing to install", directory)
            return
        await self._exec("npm", "install", "--production", cwd=directory)

    async def run(self, function: FunctionSpec, event: Optional[dict[str, Any]] = None) -> Any:
        handler_file, export = self._split_handler(function, (".js",))
        if event is None:
            event_file = function.root_path / "event.json"
            event = json.loads(event_file.read_text(encoding="utf-8")) if event_file.exists() else {}

        output = await self._exec(
            "node", "-e", _INVOKE_SCRIPT, str(handler_file), export, json.dumps(event),
            cwd=function.root_path,
        )
        try:
            return json.loads(output) if output.strip() else None
        except json.JSONDecodeError as exc:
            raise RuntimeCommandError(f"Function {function.name} returned non-JSON output") from exc
