"""
Deliveries with their ledger effects.

A quick shipment moves goods straight from a supplier to a customer: one
delivery row linked to the sale, a debit on the customer, a credit on the
supplier referencing the delivery, and a freight charge on the carrier when
we pay the freight. Everything here runs in one database transaction per call.
"""
from decimal import Decimal
import logging

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from feedtrade.core.exceptions import InvalidOperation
from feedtrade.inventory.services import record_movement
from feedtrade.logistics.legacy_pricing import format_kg, format_price
from feedtrade.logistics.models import Carrier, CarrierTransaction, Delivery, Vehicle
from feedtrade.parties.models import Account, AccountTransaction
from feedtrade.parties.services.ledger import get_account_for_contact, post_transaction
from feedtrade.sales.models import Sale
from feedtrade.seasons.services import resolve_season

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')

FREIGHT_INCLUDED = 'freight_included'


def find_carrier_id(carrier_name=None, vehicle_plate=None):
    """Active carrier with this exact name, else the carrier owning the plate"""
    if carrier_name:
        carrier_id = (
            Carrier.objects.filter(name=carrier_name, is_active=True)
            .order_by('id').values_list('id', flat=True).first()
        )
        if carrier_id:
            return carrier_id
    if vehicle_plate:
        return Vehicle.objects.filter(plate=vehicle_plate).values_list('carrier_id', flat=True).first()
    return None


def needs_carrier_charge(delivery):
    return delivery.freight_payer != 'customer' and (delivery.freight_cost or ZERO) > 0


def freight_description(delivery):
    return f"Freight - {format_kg(delivery.net_weight)} kg, {delivery.vehicle_plate or '-'}"


def _charge_carrier(delivery, user=None):
    carrier_id = find_carrier_id(delivery.carrier_name, delivery.vehicle_plate)
    if carrier_id is None:
        logger.warning(
            f"Delivery {delivery.pk}: no carrier matches name={delivery.carrier_name!r} "
            f"plate={delivery.vehicle_plate!r}; freight {delivery.freight_cost} not charged"
        )
        return None
    return CarrierTransaction.objects.create(
        carrier_id=carrier_id,
        type='freight_charge',
        amount=delivery.freight_cost,
        description=freight_description(delivery),
        reference_id=delivery.pk,
        transaction_date=delivery.delivery_date,
        season=delivery.season,
        created_by=user if user is not None and user.is_authenticated else None,
    )


def _void_carrier_charges(delivery_id):
    charges = list(CarrierTransaction.objects.filter(reference_id=delivery_id))
    for charge in charges:
        charge.soft_delete()
    return charges


def _book_stock(delivery, sign=1, movement_type=None, user=None):
    """Stock movement for the delivery's warehoused document (sale out, purchase in)"""
    if delivery.sale_id and delivery.sale.warehouse_id:
        document, reference_type, default_type, direction = delivery.sale, 'sale', 'sale_out', -1
    elif delivery.purchase_id and delivery.purchase.warehouse_id:
        document, reference_type, default_type, direction = delivery.purchase, 'purchase', 'purchase_in', 1
    else:
        return None
    quantity = delivery.net_weight * direction * sign
    if quantity == 0:
        return None
    return record_movement(
        warehouse=document.warehouse,
        feed_type=document.feed_type,
        movement_type=movement_type or default_type,
        quantity_change=quantity,
        unit_cost=document.unit_price if reference_type == 'purchase' and quantity > 0 else None,
        reference_type=reference_type,
        reference_id=document.pk,
        notes=f"Delivery {delivery.pk}",
        user=user,
    )


def _add_delivered(sale_id, quantity):
    sale = Sale.objects.select_for_update().get(pk=sale_id)
    sale.delivered_quantity += quantity
    sale.save(update_fields=['delivered_quantity', 'updated_at'])
    return sale


def record_delivery(user=None, **values):
    """Plain delivery against a sale or a purchase, with its stock movement"""
    if values.get('sale') is not None and values.get('purchase') is not None:
        raise InvalidOperation("A delivery belongs to a sale or a purchase, not both")
    values['season'] = resolve_season(values.get('season'))
    with transaction.atomic():
        delivery = Delivery.objects.create(
            created_by=user if user is not None and user.is_authenticated else None, **values
        )
        if delivery.sale_id:
            _add_delivered(delivery.sale_id, delivery.net_weight)
        _book_stock(delivery, user=user)
        if needs_carrier_charge(delivery):
            _charge_carrier(delivery, user=user)
    logger.info(f"Recorded delivery {delivery.pk} ({delivery.net_weight} kg)")
    return delivery


def create_delivery_with_transactions(sale, supplier=None, supplier_price=None, pricing_model=None,
                                      customer_price=None, user=None, **values):
    """
    Quick shipment: a delivery on ``sale`` plus its customer, supplier and carrier postings.

    ``values`` are Delivery fields (net_weight, freight_cost, freight_payer, plate, ...).
    """
    if supplier is not None and supplier_price is None:
        raise InvalidOperation("Supplier price is required when a supplier is given")
    customer_price = Decimal(customer_price if customer_price is not None else sale.unit_price)
    values.pop('purchase', None)
    values['season'] = resolve_season(values.get('season') or sale.season)

    with transaction.atomic():
        delivery = Delivery.objects.create(
            sale=sale,
            created_by=user if user is not None and user.is_authenticated else None,
            **values
        )
        net = delivery.net_weight
        freight = delivery.freight_cost or ZERO
        payer = delivery.freight_payer or 'me'
        kg = format_kg(net)

        customer_amount = net * customer_price
        description = f"Sale - {kg} kg × {format_price(customer_price)} ₺/kg"
        if payer == 'customer' and freight > 0:
            customer_amount -= freight
            description += f" (freight -{format_price(freight)} ₺)"
        post_transaction(
            get_account_for_contact(sale.contact_id), 'debit', customer_amount,
            description=description,
            reference_type='sale',
            reference_id=sale.pk,
            transaction_date=delivery.delivery_date,
            season=delivery.season,
            user=user,
        )

        if supplier is not None:
            supplier_price = Decimal(supplier_price)
            supplier_amount = net * supplier_price
            description = f"Purchase - {kg} kg × {format_price(supplier_price)} ₺/kg"
            if pricing_model == FREIGHT_INCLUDED and payer != 'supplier' and freight > 0:
                supplier_amount -= freight
                description += f" (freight -{format_price(freight)} ₺)"
            post_transaction(
                get_account_for_contact(supplier.pk), 'credit', supplier_amount,
                description=description,
                reference_type='purchase',
                reference_id=delivery.pk,
                transaction_date=delivery.delivery_date,
                season=delivery.season,
                user=user,
            )

        if payer != 'customer' and freight > 0:
            _charge_carrier(delivery, user=user)

        _add_delivered(sale.pk, net)
        _book_stock(delivery, user=user)

    logger.info(
        f"Quick shipment {delivery.pk}: sale {sale.sale_no}, {net} kg, "
        f"supplier {supplier.pk if supplier is not None else '-'}, freight {freight} ({payer})"
    )
    return delivery


def _net_by_account(queryset, positive_type):
    """{account_id: sum(positive_type) - sum(other type)} over live transactions"""
    totals = {}
    for row in queryset.values('account_id', 'type').annotate(total=Sum('amount')):
        sign = 1 if row['type'] == positive_type else -1
        totals[row['account_id']] = totals.get(row['account_id'], ZERO) + sign * row['total']
    return totals


def cancel_sale(sale, note=None, user=None):
    """Reverse every ledger effect of a sale and mark it cancelled"""
    today = timezone.localdate()
    with transaction.atomic():
        sale = Sale.objects.select_for_update().get(pk=sale.pk)
        if sale.status == 'cancelled':
            raise InvalidOperation(f"Sale {sale.sale_no} is already cancelled")
        label = f"Cancel - {sale.sale_no}" + (f" ({note})" if note else "")
        season = resolve_season(sale.season)

        customer_txs = AccountTransaction.objects.filter(reference_type='sale', reference_id=sale.pk)
        for account_id, owed in _net_by_account(customer_txs, 'debit').items():
            if owed > 0:
                post_transaction(
                    Account.objects.get(pk=account_id), 'credit', owed, description=label,
                    reference_type='sale', reference_id=sale.pk,
                    transaction_date=today, season=season, user=user,
                )

        for delivery in sale.deliveries.select_related('sale'):
            supplier_txs = AccountTransaction.objects.filter(reference_type='purchase', reference_id=delivery.pk)
            for account_id, credited in _net_by_account(supplier_txs, 'credit').items():
                # Return deliveries carry a net debit; reversing them credits the supplier back
                if credited != 0:
                    post_transaction(
                        Account.objects.get(pk=account_id), 'debit' if credited > 0 else 'credit', abs(credited),
                        description=label,
                        reference_type='purchase', reference_id=delivery.pk,
                        transaction_date=today, season=season, user=user,
                    )
            _void_carrier_charges(delivery.pk)
            _book_stock(delivery, sign=-1, movement_type='return', user=user)

        sale.status = 'cancelled'
        if note:
            sale.notes = f"{sale.notes}\nCANCELLED: {note}" if sale.notes else f"CANCELLED: {note}"
        sale.save(update_fields=['status', 'notes', 'updated_at'])

    logger.info(f"Cancelled sale {sale.sale_no}")
    return sale


def update_delivery(delivery, user=None, **values):
    """Update delivery fields and keep its carrier freight charge in step"""
    with transaction.atomic():
        delivery = Delivery.objects.select_for_update().get(pk=delivery.pk)
        old_net = delivery.net_weight
        had_charge = needs_carrier_charge(delivery)
        old_carrier_id = find_carrier_id(delivery.carrier_name, delivery.vehicle_plate) if had_charge else None
        old_freight = delivery.freight_cost

        for name, value in values.items():
            setattr(delivery, name, value)
        delivery.save()

        if delivery.sale_id and delivery.net_weight != old_net:
            _add_delivered(delivery.sale_id, delivery.net_weight - old_net)

        wants_charge = needs_carrier_charge(delivery)
        if had_charge and not wants_charge:
            _void_carrier_charges(delivery.pk)
        elif wants_charge and not had_charge:
            _charge_carrier(delivery, user=user)
        elif had_charge and wants_charge:
            new_carrier_id = find_carrier_id(delivery.carrier_name, delivery.vehicle_plate)
            if new_carrier_id != old_carrier_id:
                _void_carrier_charges(delivery.pk)
                _charge_carrier(delivery, user=user)
            elif delivery.freight_cost != old_freight or delivery.net_weight != old_net:
                for charge in CarrierTransaction.objects.filter(reference_id=delivery.pk, type='freight_charge'):
                    charge.amount = delivery.freight_cost
                    charge.description = freight_description(delivery)
                    charge.save(update_fields=['amount', 'description'])

    logger.info(f"Updated delivery {delivery.pk}")
    return delivery


def delete_delivery(delivery, user=None):
    """Move a delivery and its freight charges to the trash"""
    with transaction.atomic():
        delivery = Delivery.objects.select_for_update().get(pk=delivery.pk)
        # Trash the delivery first: restore brings back charges trashed at or after it
        delivery.soft_delete()
        _void_carrier_charges(delivery.pk)
        if delivery.sale_id:
            _add_delivered(delivery.sale_id, -delivery.net_weight)
        _book_stock(delivery, sign=-1, movement_type='adjustment', user=user)
    logger.info(f"Deleted delivery {delivery.pk}")
    return delivery


def restore_delivery(delivery, user=None):
    """Bring a trashed delivery back with the freight charges trashed alongside it"""
    with transaction.atomic():
        delivery = Delivery.all_objects.select_for_update().get(pk=delivery.pk)
        if not delivery.is_deleted:
            raise InvalidOperation(f"Delivery {delivery.pk} is not deleted")
        for charge in CarrierTransaction.all_objects.filter(
            reference_id=delivery.pk, deleted_at__gte=delivery.deleted_at,
        ):
            charge.restore()
        delivery.restore()
        if delivery.sale_id:
            _add_delivered(delivery.sale_id, delivery.net_weight)
        _book_stock(delivery, movement_type='adjustment', user=user)
    logger.info(f"Restored delivery {delivery.pk}")
    return delivery


def return_delivery(delivery, return_kg, note=None, return_date=None, user=None):
    """
    Customer sends part of a delivery back.

    Books a negative-weight delivery on the same sale, credits the customer at the
    sale price and, when a supplier was credited for the original delivery, debits
    that supplier proportionally.
    """
    return_kg = Decimal(return_kg)
    if not delivery.sale_id:
        raise InvalidOperation("Only deliveries on a sale can be returned")
    if return_kg <= 0 or return_kg > delivery.net_weight:
        raise InvalidOperation("Return quantity must be positive and at most the delivered weight")
    return_date = return_date or timezone.localdate()
    sale = delivery.sale
    kg = format_kg(return_kg)
    suffix = f" ({note})" if note else ""

    with transaction.atomic():
        returned = Delivery.objects.create(
            sale=sale,
            delivery_date=return_date,
            net_weight=-return_kg,
            vehicle_plate=delivery.vehicle_plate,
            notes=f"RETURN: {note or ''}".strip(),
            season=resolve_season(delivery.season),
            created_by=user if user is not None and user.is_authenticated else None,
        )
        post_transaction(
            get_account_for_contact(sale.contact_id), 'credit', return_kg * sale.unit_price,
            description=f"Return - {kg} kg × {format_price(sale.unit_price)} ₺/kg{suffix}",
            reference_type='sale', reference_id=sale.pk,
            transaction_date=return_date, season=returned.season, user=user,
        )

        supplier_txs = AccountTransaction.objects.filter(reference_type='purchase', reference_id=delivery.pk)
        for account_id, credited in _net_by_account(supplier_txs, 'credit').items():
            if credited > 0:
                amount = (credited * return_kg / delivery.net_weight).quantize(Decimal('0.01'))
                post_transaction(
                    Account.objects.get(pk=account_id), 'debit', amount,
                    description=f"Return - {kg} kg{suffix}",
                    reference_type='purchase', reference_id=returned.pk,
                    transaction_date=return_date, season=returned.season, user=user,
                )

        _add_delivered(sale.pk, -return_kg)
        _book_stock(returned, movement_type='return', user=user)

    logger.info(f"Returned {return_kg} kg of delivery {delivery.pk} as delivery {returned.pk}")
    return returned
