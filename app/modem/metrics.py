"""Meta metrics about how the modem is behaving.

Nothing here describes the DOCSIS connection itself; that goes out as JSON on /health.
These are for graphing how slow / flaky the modem's web UI is over time.
"""

from prometheus_client import Counter, Summary, disable_created_metrics

# By default, client will automatically create a "_created" meta metric for
#   each metric defined below.
# Having the unix epoch time of when the metric was created isn't that useful for us
#   so we'll disable it.
disable_created_metrics()

META_NS = "meta"

# How long are we spending on each request to the modem?
# summary comes with both a count and a sum so we don't need to count the number of requests ourselves
s_meta_scrape_time = Summary(
    f"{META_NS}_request_duration_seconds",
    "Time spent waiting for modem to respond",
    # Only a few pages: login, connection_data, logout
    labelnames=["scrape_target"],
)

# Scraping a few pages and possible HTTP codes is bounded (i've only ever seen 200/401)
#   so we're not going to blow up storage by doing this.
c_meta_scrape_result = Counter(
    f"{META_NS}_scrape_result",
    "Count of HTTP results per page requested from the modem",
    labelnames=["http_code", "scrape_target"],
)

c_meta_parse_result = Counter(
    f"{META_NS}_parse_result",
    "Count of successful vs failed parse attempts",
    labelnames=["parse_target", "parse_result"],
)

# Every retry means the modem handed back something other than the status page
c_meta_retry = Counter(
    f"{META_NS}_retry",
    "Count of status fetches retried after a wrong/garbled page",
)
