# feedsweep/feeds.py
"""Default tracked sources, used by jobs/seed_sources.py when no file is given."""

DEFAULT_SOURCES = [
    {
        "id": "fermilab",
        "name": "Fermilab",
        "feed_url": "https://news.fnal.gov/tag/quantum-computing/feed/",
        "domain": "news.fnal.gov",
        "description": "Fermilab quantum computing news",
    },
    {
        "id": "arstechnica",
        "name": "Ars Technica",
        "feed_url": "https://feeds.arstechnica.com/arstechnica/technology-lab",
        "domain": "arstechnica.com",
    },
    {
        "id": "theverge",
        "name": "The Verge",
        "feed_url": "https://www.theverge.com/rss/index.xml",
        "domain": "theverge.com",
    },
]
