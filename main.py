import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import uvicorn

from core import storage
from core.monitor import ProbeMonitor
from web.server import create_app

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
log = logging.getLogger("uptime")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Uptime Heatmap - link availability tracker")
    parser.add_argument(
        "data_dir",
        help="Directory for config.json and the samples database",
    )
    return parser.parse_args()


def load_config(data_dir: str) -> dict:
    config_path = Path(data_dir) / "config.json"
    if not config_path.exists():
        log.error("Config file not found: %s", config_path)
        sys.exit(1)
    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_timezone(report_cfg: dict) -> ZoneInfo:
    name = report_cfg.get("timezone", "UTC")
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        log.error("Unknown timezone in config: %s", name)
        sys.exit(1)


async def main():
    args = parse_args()
    data_dir = str(Path(args.data_dir).resolve())
    config = load_config(data_dir)
    tz = load_timezone(config.get("report", {}))

    db_path = str(Path(data_dir) / "uptime.db")
    storage.init(db_path)

    app = create_app(config, tz)

    web_cfg = config.get("web", {})
    host = web_cfg.get("host", "0.0.0.0")
    port = web_cfg.get("port", 8000)

    uvicorn_config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level="info",
    )
    server = uvicorn.Server(uvicorn_config)

    tasks = [server.serve()]

    if config.get("probe", {}).get("enabled", True):
        monitor = ProbeMonitor(config)
        tasks.append(monitor.run())
        log.info("Probe monitor started")

    log.info("Dashboard available at http://%s:%d", host, port)
    log.info("Data directory: %s", data_dir)

    await asyncio.gather(*tasks)


if __name__ == "__main__":
    asyncio.run(main())
