from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from mipmap.builder import DEFAULT_FACTOR, DEFAULT_MAX_LEVELS, LevelBuilder
from mipmap.datasource import MipMapMode, PlotDataSource
from mipmap.selector import DEFAULT_BUDGET_MULTIPLIER, LevelSelector
from mipmap.session import MipMapSession


@dataclass
class ViewerConfig:
    mipmap_factor: int = DEFAULT_FACTOR
    mipmap_max_levels: int = DEFAULT_MAX_LEVELS
    mipmap_mode: str = MipMapMode.AUTO.value
    mipmap_manual_level: int = 0
    budget_multiplier: float = DEFAULT_BUDGET_MULTIPLIER
    bound_extension: float = 0.1
    build_workers: int = 2
    ini_path: Path | None = None

    @classmethod
    def load(cls, ini_path: str | Path | None = None) -> "ViewerConfig":
        cfg = cls()
        path = Path(ini_path or "config.ini")
        if path.exists():
            import configparser

            parser = configparser.ConfigParser()
            parser.read(path)
            section = parser["mipmap"] if "mipmap" in parser else None
            if section:
                factor = section.getint("factor", fallback=cfg.mipmap_factor)
                if factor >= 2:
                    cfg.mipmap_factor = factor
                max_levels = section.getint("max_levels", fallback=cfg.mipmap_max_levels)
                if max_levels >= 1:
                    cfg.mipmap_max_levels = max_levels
                mode = section.get("mode", fallback=cfg.mipmap_mode).strip().lower()
                if mode in {m.value for m in MipMapMode}:
                    cfg.mipmap_mode = mode
                cfg.mipmap_manual_level = max(
                    0, section.getint("manual_level", fallback=cfg.mipmap_manual_level)
                )
                cfg.build_workers = max(
                    1, section.getint("build_workers", fallback=cfg.build_workers)
                )

            render_section = parser["render"] if "render" in parser else None
            if render_section:
                multiplier = render_section.getfloat(
                    "budget_multiplier", fallback=cfg.budget_multiplier
                )
                if multiplier > 0:
                    cfg.budget_multiplier = multiplier
                cfg.bound_extension = max(
                    0.0,
                    render_section.getfloat("bound_extension", fallback=cfg.bound_extension),
                )
        cfg.ini_path = path
        return cfg

    def level_builder(self) -> LevelBuilder:
        return LevelBuilder(factor=self.mipmap_factor, max_levels=self.mipmap_max_levels)

    def level_selector(self) -> LevelSelector:
        return LevelSelector(budget_multiplier=self.budget_multiplier)

    def data_source(self) -> PlotDataSource:
        return PlotDataSource(
            self.level_selector(),
            mode=self.mipmap_mode,
            manual_level=self.mipmap_manual_level,
            bound_extension=self.bound_extension,
        )

    def session(self) -> MipMapSession:
        return MipMapSession(
            self.level_builder(), self.data_source(), max_workers=self.build_workers
        )

    def save(self) -> None:
        if self.ini_path is None:
            return
        import configparser

        parser = configparser.ConfigParser()
        parser["mipmap"] = {
            "factor": str(self.mipmap_factor),
            "max_levels": str(self.mipmap_max_levels),
            "mode": self.mipmap_mode,
            "manual_level": str(self.mipmap_manual_level),
            "build_workers": str(self.build_workers),
        }
        parser["render"] = {
            "budget_multiplier": f"{self.budget_multiplier:.3f}",
            "bound_extension": f"{self.bound_extension:.3f}",
        }
        with self.ini_path.open("w") as fh:
            parser.write(fh)
