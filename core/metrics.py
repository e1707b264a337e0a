"""Prometheus metrics for monitoring."""

from prometheus_client import Counter, Histogram

# Like / match metrics
likes_total = Counter("likes_total", "Total number of likes created", ["source"])

matches_created_total = Counter("matches_created_total", "Total number of matches created")

# Conversation metrics
messages_sent_total = Counter("messages_sent_total", "Total number of messages sent")

# One-time code metrics
otp_codes_issued_total = Counter("otp_codes_issued_total", "Total number of verification codes issued")

otp_verifications_total = Counter(
    "otp_verifications_total", "Total number of verification attempts by outcome", ["outcome"]
)

otp_purged_total = Counter("otp_purged_total", "Total number of expired codes removed by the sweeper")

email_delivery_failures_total = Counter(
    "email_delivery_failures_total", "Total number of verification emails that failed to send"
)

# Response time metrics
api_request_duration = Histogram(
    "api_request_duration_seconds", "API request duration in seconds", ["method", "endpoint", "status"]
)
