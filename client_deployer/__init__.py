"""Deploy static-site client builds to S3 website buckets."""

__version__ = "0.3.0"
