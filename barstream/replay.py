"""
BarStream – Replay CLI
=======================
Reproduce un fichero JSON-lines de trades a través de las pipelines y
emite un objeto JSON por bucket cerrado.

USO:
    python -m barstream.replay --input trades.jsonl

    # Intervalo y política explícitos
    python -m barstream.replay --input trades.jsonl --interval 300 --policy avg_close

    # Cadena de indicadores desde fichero JSON (lista de IndicatorConfig)
    python -m barstream.replay --input trades.jsonl --indicators chain.json

FORMATO DE ENTRADA (una línea por trade):
    {"market": "BTCUSD", "source": "BINANCE", "time": 1700000000.5,
     "price": 37000.1, "volume": 0.25, "side": "buy"}
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import IO, Iterator, List, Optional

from barstream.container import Container
from barstream.domain.exceptions.domain_errors import DomainError
from barstream.domain.value_objects.tick import Tick
from barstream.shared.config.settings import Settings
from barstream.shared.logging.logger import get_logger, setup_logging

logger = get_logger("replay")


def read_ticks(stream: IO[str]) -> Iterator[Tick]:
    """Leer trades JSON-lines; las líneas vacías se ignoran."""
    for lineno, line in enumerate(stream, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            payload = json.loads(line)
        except json.JSONDecodeError as exc:
            raise DomainError(f"Línea {lineno}: JSON inválido ({exc.msg})", code="INVALID_INPUT") from exc
        if not isinstance(payload, dict):
            raise DomainError(f"Línea {lineno}: se esperaba un objeto JSON", code="INVALID_INPUT")
        yield Tick.from_dict(payload)


def _load_indicators(path: str) -> List[dict]:
    """Leer la cadena de indicadores (lista JSON de IndicatorConfig)."""
    try:
        chain = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise DomainError(f"No se puede leer {path}: {exc.strerror}", code="INVALID_INPUT") from exc
    except json.JSONDecodeError as exc:
        raise DomainError(f"{path}: JSON inválido ({exc.msg})", code="INVALID_INPUT") from exc

    if not isinstance(chain, list) or not all(isinstance(item, dict) for item in chain):
        raise DomainError(f"{path}: se esperaba una lista de objetos", code="INVALID_INPUT")
    return chain


def _open_input(path: str) -> IO[str]:
    try:
        return open(path, encoding="utf-8")
    except OSError as exc:
        raise DomainError(f"No se puede abrir {path}: {exc.strerror}", code="INVALID_INPUT") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="barstream-replay",
        description="Reproduce trades JSON-lines y emite barras + indicadores por bucket",
    )
    parser.add_argument("--input", "-i", required=True, help="Fichero JSON-lines ('-' = stdin)")
    parser.add_argument("--interval", type=float, default=None, help="Duración del bucket (s)")
    parser.add_argument(
        "--policy", choices=["avg_ohlc", "avg_close", "sum_ohlc"], default=None,
        help="Política de fusión de fuentes",
    )
    parser.add_argument(
        "--mode", choices=["ohlc", "cum_ohlc"], default=None,
        help="Modo de acumulación por fuente",
    )
    parser.add_argument("--indicators", default=None, help="JSON con la lista de indicadores")
    parser.add_argument("--log-level", default=None, help="Nivel de logging (INFO, DEBUG...)")
    return parser


def run(args: argparse.Namespace, out: IO[str]) -> int:
    settings = Settings()
    # stdout queda reservado para las barras emitidas
    setup_logging(args.log_level or settings.log_level, stream=sys.stderr)

    indicators = _load_indicators(args.indicators) if args.indicators else None

    container = Container(settings=settings)
    container.configure(
        indicators=indicators,
        interval=args.interval,
        merge_policy=args.policy,
        accumulator_mode=args.mode,
    )
    manager = container.market_state

    emitted = 0
    stream = sys.stdin if args.input == "-" else _open_input(args.input)
    try:
        for tick in read_ticks(stream):
            output = manager.process_tick(tick)
            if output is not None:
                out.write(json.dumps(output.to_dict()) + "\n")
                emitted += 1
    finally:
        if stream is not sys.stdin:
            stream.close()

    for output in manager.flush():
        out.write(json.dumps(output.to_dict()) + "\n")
        emitted += 1

    logger.info("Replay terminado: %d barras emitidas (%d mercados)",
                emitted, len(manager.get_all_markets()))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return run(args, sys.stdout)
    except DomainError as exc:
        logger.error("Replay abortado: %s", exc.message)
        print(json.dumps(exc.to_dict()), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
