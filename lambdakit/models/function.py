from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

FUNCTION_FILENAME = "lambdakit-function.json"


class FunctionCustom(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    exclude_patterns: list[str] = Field(default_factory=list, alias="excludePatterns")
    include_paths: list[str] = Field(default_factory=list, alias="includePaths")


class FunctionSpec(BaseModel):
    """A function declared in `lambdakit-function.json`.

    `handler` is relative to the package root, e.g. `users/show/handler.handler`
    for a function living in `<package root>/users/show/`.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    handler: str
    runtime: str = "nodejs"
    root_path: Path = Field(..., exclude=True)
    custom: FunctionCustom = Field(default_factory=FunctionCustom)

    @property
    def exclude_patterns(self) -> list[str]:
        return list(self.custom.exclude_patterns)

    @property
    def include_paths(self) -> list[str]:
        return list(self.custom.include_paths) or ["."]

    @staticmethod
    def load(function_dir: Path) -> "FunctionSpec":
        function_dir = function_dir.resolve()
        data = json.loads((function_dir / FUNCTION_FILENAME).read_text(encoding="utf-8"))
        return FunctionSpec.model_validate({**data, "root_path": function_dir})
