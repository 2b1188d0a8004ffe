#!/usr/bin/env python3
"""Example producer that puts jobs into a beanstalkd tube."""

import argparse
import logging
import sys
import time

sys.path.insert(0, str(__file__).rsplit("/", 2)[0])

from pystalk import session


def main():
    parser = argparse.ArgumentParser(description="Put jobs into beanstalkd")
    parser.add_argument(
        "--address",
        default="localhost:11300",
        help="Broker address as host:port (default: localhost:11300)",
    )
    parser.add_argument("--tube", default="default", help="Tube to put into")
    parser.add_argument("--count", type=int, default=10, help="Number of jobs")
    parser.add_argument("--priority", type=int, default=1024, help="Job priority")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    with session(args.address) as conn:
        conn.use(args.tube)
        print(f"Putting {args.count} jobs into '{args.tube}'...")

        for i in range(args.count):
            body = f"Job {i + 1} at {time.time()}"
            jid = conn.put(body, priority=args.priority)
            print(f"  Put job {jid}: {body}")

        print("Done!")


if __name__ == "__main__":
    main()
