import argparse
import json
import logging
from typing import Optional

from data_gateway.core.engine import DataEngine
from data_gateway.core.interfaces import ISink, TagMapping
from data_gateway.adapters.sink_mqtt import MQTTSink
from data_gateway.adapters.sink_file import RapidScadaFileSink
from data_gateway.adapters.source_rest import RestSourceAdapter

logger = logging.getLogger("Gateway")


def load_mapping(path: Optional[str]) -> Optional[TagMapping]:
    """Tag -> channel id mapping, e.g. {"M001.production_count": 101}."""
    if not path:
        return None
    with open(path, "r") as f:
        return {tag: int(channel) for tag, channel in json.load(f).items()}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="CNC Machine Tracker Data Gateway")
    parser.add_argument("--sink", choices=["mqtt", "file"], default="mqtt", help="Select data sink (mqtt or file)")
    parser.add_argument("--url", default="http://localhost:8000/api/machines", help="Tracker machines endpoint")
    parser.add_argument("--interval", type=float, default=1.0, help="Polling interval in seconds")
    parser.add_argument("--mapping", default=None, help="JSON file mapping tag names to channel ids")
    parser.add_argument("--broker", default="localhost")
    parser.add_argument("--port", type=int, default=1883)
    parser.add_argument("--topic", default="cnc-tracker/machines")
    parser.add_argument("--file-path", default="gateway_output.txt")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format='[GATEWAY] %(asctime)s | %(message)s', datefmt='%H:%M:%S')

    logger.info(f">>> Initializing Data Gateway using {args.sink.upper()} Sink...")

    source = RestSourceAdapter(args.url)
    sink: ISink
    if args.sink == "mqtt":
        sink = MQTTSink(args.broker, args.port, args.topic)
    else:
        sink = RapidScadaFileSink(args.file_path)

    engine = DataEngine(source, sink, load_mapping(args.mapping))

    source.connect()
    sink.connect()
    try:
        engine.run(interval=args.interval)
    finally:
        sink.disconnect()
        source.disconnect()


if __name__ == "__main__":
    main()
