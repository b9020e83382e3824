"""JavaScript and TypeScript workspace detector."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

from .base import Detector
from .utils import dedupe, has_suffix, list_root, load_json, merged_dependencies
from ..models import DetectorResult

_JS_SUFFIXES = (".js", ".jsx", ".mjs", ".cjs")
_TS_SUFFIXES = (".ts", ".tsx", ".mts", ".cts")
_UI_LIBRARIES = ("react", "vue", "svelte", "@angular/core", "astro", "next", "nuxt")

# Backend frameworks: (dependency, framework, extra signals, capabilities)
_BACKENDS: tuple[tuple[str, str, tuple[str, ...], tuple[str, ...]], ...] = (
    ("express", "express", ("express", "node"), ("api",)),
    ("fastify", "fastify", ("fastify", "node"), ("api",)),
    ("@nestjs/core", "nest", ("nest", "node", "api"), ("api",)),
    ("hono", "hono", ("hono", "node", "api"), ("api",)),
    ("koa", "koa", ("koa", "node"), ()),
)

_CONFIG_FILES: tuple[tuple[tuple[str, ...], str, tuple[str, ...], tuple[str, ...]], ...] = (
    (("next.config.js", "next.config.mjs", "next.config.ts"), "nextjs", ("nextjs",), ()),
    (("nuxt.config.js", "nuxt.config.ts"), "nuxt", ("nuxt",), ()),
    (("svelte.config.js",), "svelte", ("svelte",), ()),
    (("astro.config.mjs", "astro.config.js"), "astro", ("astro", "static"), ("static",)),
)


class JavaScriptDetector(Detector):
    """Detects Node.js, browser and TypeScript projects from package.json."""

    name = "javascript"

    def detect(self, root: Path) -> Optional[DetectorResult]:
        names = list_root(root)
        has_js = has_suffix(names, _JS_SUFFIXES)
        has_ts = has_suffix(names, _TS_SUFFIXES)
        if not has_js and not has_ts and "package.json" not in names:
            return None

        language = "javascript"
        signals: List[str] = []
        capabilities: List[str] = []
        framework: Optional[str] = None

        if has_ts or "tsconfig.json" in names:
            language = "typescript"
            signals.append("typescript")
        if has_js:
            signals.append("javascript")

        if "package.json" in names:
            package = load_json(root / "package.json")
            deps = merged_dependencies(package, "dependencies", "devDependencies")
            framework = self._detect_framework(package, deps, signals, capabilities)
            if "vite" in deps:
                signals.append("vite")
            if "webpack" in deps or "webpack-cli" in deps:
                signals.append("webpack")

        if framework is None:
            for filenames, candidate, extra_signals, extra_caps in _CONFIG_FILES:
                if any(filename in names for filename in filenames):
                    framework = candidate
                    signals.extend(extra_signals)
                    capabilities.extend(extra_caps)
                    break

        return DetectorResult(
            language=language,
            framework=framework,
            signals=dedupe(signals),
            capabilities=dedupe(capabilities),
            detector=self.name,
        )

    @staticmethod
    def _detect_framework(
        package: Dict[str, object],
        deps: Dict[str, object],
        signals: List[str],
        capabilities: List[str],
    ) -> Optional[str]:
        if "next" in deps:
            signals.extend(["nextjs", "react", "ssr"])
            capabilities.append("ssr")
            next_config = package.get("next")
            if (isinstance(next_config, dict) and next_config.get("output") == "export") or (
                "next-plugin-s3" in deps
            ):
                signals.append("static")
                capabilities.append("static")
            return "nextjs"
        if "nuxt" in deps or "nuxt3" in deps:
            signals.extend(["nuxt", "vue", "ssr"])
            capabilities.append("ssr")
            return "nuxt"
        if "react" in deps and not any(lib in deps for lib in ("vue", "svelte", "@angular/core")):
            signals.append("react")
            if "react-scripts" in deps or "vite" in deps:
                signals.append("spa")
            return None
        if "vue" in deps:
            signals.extend(["vue", "spa"])
            return None
        if "@sveltejs/kit" in deps:
            signals.extend(["sveltekit", "svelte", "ssr"])
            capabilities.append("ssr")
            return "sveltekit"
        if "svelte" in deps:
            signals.extend(["svelte", "spa"])
            return "svelte"
        if "@angular/core" in deps:
            signals.extend(["angular", "spa"])
            return "angular"
        if "astro" in deps:
            signals.extend(["astro", "static"])
            capabilities.append("static")
            return "astro"
        for dependency, framework, extra_signals, extra_caps in _BACKENDS:
            if dependency in deps:
                signals.extend(extra_signals)
                capabilities.extend(extra_caps)
                return framework
        if not any(lib in deps for lib in _UI_LIBRARIES):
            signals.append("node")
        return None
