"""Example usage of ndjson_stream package."""

import argparse
import json
import logging
import sys

from ndjson_stream import JsonLineConsumer, StreamSettings, TransportError, fetch_get, fetch_post


def print_record(record, is_last):
    """Simple callback that prints each record to the console."""
    print(json.dumps(record, ensure_ascii=False))
    if is_last:
        print("Stream complete")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Stream a newline-delimited JSON endpoint")
    parser.add_argument("url")
    parser.add_argument("--post", metavar="JSON", help="Send a POST request with this JSON body")
    parser.add_argument("-H", "--header", action="append", default=[], help="Header as 'Name: value'")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    body = None
    if args.post is not None:
        try:
            body = json.loads(args.post)
        except json.JSONDecodeError as e:
            parser.error(f"--post is not valid JSON: {e}")

    headers = {}
    for header in args.header:
        name, _, value = header.partition(":")
        headers[name.strip()] = value.strip()

    consumer = JsonLineConsumer(on_record=print_record)
    settings = StreamSettings.from_env()
    try:
        if args.post is not None:
            result = fetch_post(args.url, consumer, headers, json=body, settings=settings)
        else:
            result = fetch_get(args.url, consumer, headers, settings=settings)
    except TransportError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"{result.lines} lines, {len(consumer.records)} records, {consumer.errors} errors (HTTP {result.status_code})")
    return 0 if consumer.errors == 0 else 2


if __name__ == "__main__":
    sys.exit(main())
