"""crawler-novgo: crawl a web novel from novgo.net into an EPUB or JSON file.

Usage::

    from novgo_crawler import NovelCrawler

    crawler = NovelCrawler("https://novgo.net/some-novel.html", output_format="json")
    path = asyncio.run(crawler.run())
"""

__version__ = "0.1.0"

from .crawler import NovelCrawler, RunState  # noqa: E402

__all__ = ["NovelCrawler", "RunState", "__version__"]
