"""C# and .NET workspace detector."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from .base import Detector
from .utils import dedupe, list_root, read_text
from ..models import DetectorResult


class DotNetDetector(Detector):
    """Detects .NET solutions, ASP.NET Core and Blazor projects."""

    name = "dotnet"

    def detect(self, root: Path) -> Optional[DetectorResult]:
        names = list_root(root)
        csproj = sorted(name for name in names if name.endswith(".csproj"))
        has_sln = any(name.endswith(".sln") for name in names)
        has_global_json = "global.json" in names
        if not csproj and not has_sln and "Program.cs" not in names and not has_global_json:
            return None

        signals: List[str] = ["csharp", "dotnet"]
        capabilities: List[str] = []
        framework: Optional[str] = "dotnet" if has_global_json else None

        if csproj:
            content = read_text(root / csproj[0])
            if "Microsoft.AspNetCore" in content:
                framework = framework or "aspnet"
                signals.append("aspnet")
                if "Microsoft.AspNetCore.Mvc" in content:
                    signals.append("mvc")
                if "Microsoft.AspNetCore.Blazor" in content:
                    signals.append("blazor")
            if "Microsoft.NET.Sdk.BlazorWebAssembly" in content:
                framework = "blazor-wasm"
                signals.append("blazor-wasm")
            elif "Microsoft.NET.Sdk.Web" in content:
                framework = "aspnet"
            elif "Microsoft.NET.Sdk" in content and framework is None:
                framework = "dotnet"

        if framework == "aspnet" or any("Controller" in name for name in names):
            capabilities.append("api")
            signals.append("api")
        if "Pages" in names or "Startup.cs" in names:
            signals.append("razor")

        return DetectorResult(
            language="csharp",
            framework=framework,
            signals=dedupe(signals),
            capabilities=capabilities,
            detector=self.name,
        )
