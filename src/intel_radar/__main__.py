from __future__ import annotations

import argparse
import asyncio
import logging
from concurrent.futures import Executor, ThreadPoolExecutor

from intel_radar.core.constants import FEED_SOURCES
from intel_radar.processing.pipeline import (
    build_default_orchestrator,
    build_default_pipeline,
    build_intel_digest,
)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="intel_radar", description="Build the global intelligence radar digest.")
    parser.add_argument("--status", action="store_true", help="check both AI backends and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


async def _status(executor: Executor) -> str:
    checks = await build_default_orchestrator(executor=executor).check_status()
    return "\n".join(checks.values())


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # 피드 + 백엔드 2개가 동시에 돌 수 있는 크기
    executor = ThreadPoolExecutor(max_workers=len(FEED_SOURCES) + 2, thread_name_prefix="intel-io")
    try:
        if args.status:
            print(asyncio.run(_status(executor)))
        else:
            pipeline = build_default_pipeline(logger=print, executor=executor)
            print(asyncio.run(build_intel_digest(pipeline)))
    finally:
        # 시간 초과로 버려진 요청 스레드를 기다리지 않는다
        executor.shutdown(wait=False, cancel_futures=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
