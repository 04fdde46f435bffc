"""Application configuration + graph/scenario file loader for FlowLab.

All env vars defined here with FLOWLAB_ prefix.
File loaders: load_graph(), load_scenario()
"""

from pydantic_settings import BaseSettings

from flowlab.config.loader import load_graph, load_scenario


class FlowLabConfig(BaseSettings):
    # ── App ──
    app_name: str = "flowlab"
    debug: bool = False
    log_level: str = "INFO"

    # ── Engine ──
    max_walk_steps: int = 10_000        # hard cap on steps for any graph walk / path enumeration

    # ── Content ──
    scenario_dir: str = "./scenarios"   # where the CLI looks for relative scenario paths

    model_config = {"env_prefix": "FLOWLAB_", "env_file": ".env", "extra": "ignore"}


config = FlowLabConfig()


__all__ = [
    "FlowLabConfig",
    "config",
    "load_graph",
    "load_scenario",
]
