"""
Entry point to run the background tracker (`python main.py --once` for a single pass).
"""
import asyncio

from worker.main import main as worker_main


if __name__ == "__main__":
    asyncio.run(worker_main())
