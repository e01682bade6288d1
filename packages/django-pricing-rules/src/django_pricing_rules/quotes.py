"""Custom quote request workflow.

Provides:
- submit_custom_quote_request: Record a booking that needs manual quoting
- get_quote_request, list_quote_requests, list_quote_requests_for_user: Reads
- get_allowed_transitions: Valid next statuses for a request
- update_quote_request_status: Move a request along the workflow
- assign_professional: Hand a quoted request to a professional
"""
import logging
from typing import Any, Mapping, Optional

from django.db import transaction

from django_pricing_rules.catalog import service_exists
from django_pricing_rules.exceptions import (
    InvalidTransition,
    QuoteRequestNotFound,
    UnknownService,
)
from django_pricing_rules.models import CustomQuoteRequest, Rule
from django_pricing_rules.results import CustomQuoteRequired

logger = logging.getLogger(__name__)

Status = CustomQuoteRequest.Status

# Keyed by plain status strings, as they come back from the database
TRANSITIONS = {
    'pending': ['reviewed'],
    'reviewed': ['quoted'],
    'quoted': ['assigned'],
}

TERMINAL_STATUSES = ['assigned']


@transaction.atomic
def submit_custom_quote_request(
    service_id,
    customer_name: str,
    customer_email: str,
    request_data: Mapping[str, Any],
    customer_phone: str = '',
    user_id=None,
    evaluation: Optional[CustomQuoteRequired] = None,
) -> CustomQuoteRequest:
    """
    Create a pending quote request for a booking that could not be priced.

    Args:
        service_id: Service the customer wants quoted
        customer_name: Contact name
        customer_email: Contact email
        request_data: Booking attributes and notes as submitted
        customer_phone: Optional contact phone
        user_id: Optional customer account id (None for guests)
        evaluation: The CustomQuoteRequired result that sent the customer here

    Returns:
        The created CustomQuoteRequest in 'pending' status

    Raises:
        UnknownService: If service_id is not a known service
    """
    if not service_exists(service_id):
        raise UnknownService(service_id)

    triggering_rule_id = None
    if evaluation is not None:
        # Trigger may be gone since evaluation; the lock holds off a concurrent delete
        if Rule.objects.select_for_update().filter(pk=evaluation.triggering_rule_id).first():
            triggering_rule_id = evaluation.triggering_rule_id
        else:
            logger.warning(
                f"Triggering rule {evaluation.triggering_rule_id} no longer exists; "
                f"storing quote request for service {service_id} without it"
            )

    quote_request = CustomQuoteRequest.objects.create(
        service_id=service_id,
        user_id=str(user_id) if user_id is not None else '',
        customer_name=customer_name,
        customer_email=customer_email,
        customer_phone=customer_phone,
        request_data=dict(request_data),
        triggering_rule_id=triggering_rule_id,
        triggering_attribute=evaluation.triggering_attribute if evaluation else '',
    )
    logger.info(f"Submitted custom quote request {quote_request.pk} for service {service_id}")
    return quote_request


def get_quote_request(quote_request_id) -> CustomQuoteRequest:
    """Get a quote request by id or raise QuoteRequestNotFound."""
    try:
        return CustomQuoteRequest.objects.select_related('service', 'triggering_rule').get(
            pk=quote_request_id
        )
    except (CustomQuoteRequest.DoesNotExist, ValueError, TypeError):
        raise QuoteRequestNotFound(quote_request_id)


def list_quote_requests(status: Optional[str] = None, service_id=None):
    """
    Quote requests for the admin list, newest first.

    Args:
        status: Only requests in this status
        service_id: Only requests for this service

    Returns:
        QuerySet of CustomQuoteRequest
    """
    qs = CustomQuoteRequest.objects.select_related('service')
    if status is not None:
        qs = qs.filter(status=status)
    if service_id is not None:
        qs = qs.filter(service_id=service_id)
    return qs.order_by('-created_at', '-id')


def list_quote_requests_for_user(user_id):
    """A customer's own quote requests, newest first."""
    if user_id is None or str(user_id) == '':
        return CustomQuoteRequest.objects.none()
    return (
        CustomQuoteRequest.objects.select_related('service')
        .filter(user_id=str(user_id))
        .order_by('-created_at', '-id')
    )


def get_allowed_transitions(quote_request: CustomQuoteRequest) -> list[str]:
    """Return the statuses this request may move to next."""
    status = str(quote_request.status)
    if status in TERMINAL_STATUSES:
        return []
    return list(TRANSITIONS.get(status, []))


def _check_transition(quote_request: CustomQuoteRequest, to_status: str) -> None:
    if to_status not in get_allowed_transitions(quote_request):
        if quote_request.status in TERMINAL_STATUSES:
            raise InvalidTransition(
                quote_request.status, to_status,
                f"Cannot transition from terminal status '{quote_request.status}'"
            )
        raise InvalidTransition(quote_request.status, to_status)


@transaction.atomic
def update_quote_request_status(
    quote_request: CustomQuoteRequest,
    to_status: str,
) -> CustomQuoteRequest:
    """
    Move a quote request to the next status.

    Moving to 'assigned' goes through assign_professional() instead, since
    it needs a professional.

    Raises:
        InvalidTransition: If to_status is not the next step
    """
    quote_request = CustomQuoteRequest.objects.select_for_update().get(pk=quote_request.pk)
    if to_status == Status.ASSIGNED:
        raise InvalidTransition(
            quote_request.status, to_status,
            "Use assign_professional() to assign a quote request"
        )
    _check_transition(quote_request, to_status)

    from_status = quote_request.status
    quote_request.status = to_status
    quote_request.save(update_fields=['status', 'updated_at'])
    logger.info(f"Quote request {quote_request.pk}: {from_status} -> {to_status}")
    return quote_request


@transaction.atomic
def assign_professional(
    quote_request: CustomQuoteRequest,
    professional_id,
) -> CustomQuoteRequest:
    """
    Assign a professional to a quoted request, completing the workflow.

    Raises:
        InvalidTransition: If the request is not in 'quoted' status
    """
    quote_request = CustomQuoteRequest.objects.select_for_update().get(pk=quote_request.pk)
    _check_transition(quote_request, Status.ASSIGNED)

    quote_request.professional_id = str(professional_id)
    quote_request.status = Status.ASSIGNED
    quote_request.save(update_fields=['professional_id', 'status', 'updated_at'])
    logger.info(f"Quote request {quote_request.pk} assigned to professional {professional_id}")
    return quote_request
