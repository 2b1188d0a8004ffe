#!/usr/bin/env python3
"""Example consumer that reserves and deletes jobs from beanstalkd."""

import argparse
import logging
import sys

sys.path.insert(0, str(__file__).rsplit("/", 2)[0])

from pystalk import session


def main():
    parser = argparse.ArgumentParser(description="Consume jobs from beanstalkd")
    parser.add_argument(
        "--address",
        default="localhost:11300",
        help="Broker address as host:port (default: localhost:11300)",
    )
    parser.add_argument("--tube", default="default", help="Tube to watch")
    parser.add_argument(
        "--poll",
        action="store_true",
        help="Keep waiting for new jobs",
    )
    parser.add_argument(
        "--bury-failures",
        action="store_true",
        help="Bury jobs whose body is not valid UTF-8 instead of deleting them",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    with session(args.address) as conn:
        conn.watch(args.tube)
        if args.tube != "default":
            conn.ignore("default")
        print(f"Watching {conn.watching()}. Reserving jobs...")

        job_count = 0
        while True:
            job = conn.reserve(timeout=5 if args.poll else 0)
            if job is None:
                if args.poll:
                    continue
                print("No more jobs available.")
                break

            try:
                text = job.body.decode("utf-8")
            except UnicodeDecodeError:
                if args.bury_failures:
                    job.bury()
                    print(f"  Buried job {job.id}")
                    continue
                raise

            job_count += 1
            print(f"  Reserved job {job.id}: {text}")
            job.delete()

        print(f"Done! Processed {job_count} jobs.")


if __name__ == "__main__":
    main()
