"""Prometheus metrics for MailFlow.

Counters are incremented by the mail item service after the change has been
flushed. Labels are closed enumerations so cardinality stays bounded.
"""

from prometheus_client import Counter

mail_items_received_total = Counter(
    "mailflow_mail_items_received_total",
    "Total mail items logged at intake",
    ["carrier", "type"],
)

mail_item_transitions_total = Counter(
    "mailflow_mail_item_transitions_total",
    "Total mail item status transitions",
    ["from_status", "to_status"],
)

notifications_created_total = Counter(
    "mailflow_notifications_created_total",
    "Total recipient notifications queued",
    ["type"],  # email|sms|app|other
)
