"""
Status vocabularies for purchase requests, their items and receipts.
Stored lowercase, matching the values exchanged with the web client.
"""

# Purchase request
REQUEST_PENDING = "pending"
REQUEST_APPROVED = "approved"
REQUEST_PARTIAL = "partial"
REQUEST_REJECTED = "rejected"
REQUEST_COMPLETED = "completed"

REQUEST_STATUSES = (REQUEST_PENDING, REQUEST_APPROVED, REQUEST_PARTIAL, REQUEST_REJECTED, REQUEST_COMPLETED)
# Targets an admin may pick when reviewing a whole request
REVIEWABLE_REQUEST_STATUSES = (REQUEST_APPROVED, REQUEST_PARTIAL, REQUEST_REJECTED)
COMPLETABLE_REQUEST_STATUSES = (REQUEST_APPROVED, REQUEST_PARTIAL)
RECEIVABLE_REQUEST_STATUSES = (REQUEST_APPROVED, REQUEST_PARTIAL, REQUEST_COMPLETED)

# Request item
ITEM_PENDING = "pending"
ITEM_APPROVED = "approved"
ITEM_REJECTED = "rejected"
ITEM_SUSPENDED = "suspended"

ITEM_STATUSES = (ITEM_PENDING, ITEM_APPROVED, ITEM_REJECTED, ITEM_SUSPENDED)
ITEM_REVIEW_STATUSES = (ITEM_APPROVED, ITEM_REJECTED, ITEM_SUSPENDED)
# Suspended items are still "in progress" and count towards completion
ITEM_COMPLETION_STATUSES = (ITEM_APPROVED, ITEM_SUSPENDED)

# Priority
PRIORITY_URGENT = "urgent"
PRIORITY_HIGH = "high"
PRIORITY_NORMAL = "normal"
PRIORITY_LOW = "low"

PRIORITIES = (PRIORITY_URGENT, PRIORITY_HIGH, PRIORITY_NORMAL, PRIORITY_LOW)

# Receipt condition
CONDITION_GOOD = "good"
CONDITION_DAMAGED = "damaged"
CONDITION_PARTIAL_DAMAGE = "partial_damage"

RECEIPT_CONDITIONS = (CONDITION_GOOD, CONDITION_DAMAGED, CONDITION_PARTIAL_DAMAGE)

# Per-item receiving progress (derived, never stored)
RECEIVING_PENDING = "pending"
RECEIVING_PARTIAL = "partial"
RECEIVING_COMPLETE = "complete"
RECEIVING_OVER_DELIVERED = "over_delivered"

# Product availability
PRODUCT_AVAILABLE = "available"
PRODUCT_UNAVAILABLE = "unavailable"

PRODUCT_STATUSES = (PRODUCT_AVAILABLE, PRODUCT_UNAVAILABLE)
