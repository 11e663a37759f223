"""
Stock movements.

Every change to an item's on-hand quantity goes through an
``InventoryTransaction`` row and the matching ``InventoryStockLevel`` update,
inside one database transaction.
"""
import logging
from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP

from django.db import transaction
from rest_framework import status

from authentication.exceptions import POSError
from authentication.models import AuditLog, Branch
from .models import (
    InventoryItem, InventoryStockLevel, InventoryTransaction, InventoryUnit,
    MenuItemRecipe, RecipeLine, UnitConversion,
)

logger = logging.getLogger(__name__)

QTY_PLACES = Decimal('0.001')


def round_qty(value):
    return Decimal(value).quantize(QTY_PLACES, rounding=ROUND_HALF_UP)


def convert_to_base(qty, unit, base_unit):
    """
    Convert ``qty`` expressed in ``unit`` into ``base_unit``.

    Direct conversion multiplies, a reverse conversion divides. Without any
    conversion row (or without a unit) the quantity is taken as already in
    the base unit.
    """
    qty = Decimal(qty)
    if unit is None or base_unit is None or unit.pk == base_unit.pk:
        return qty

    direct = UnitConversion.objects.filter(from_unit=unit, to_unit=base_unit).first()
    if direct is not None:
        return qty * direct.multiplier

    reverse = UnitConversion.objects.filter(from_unit=base_unit, to_unit=unit).first()
    if reverse is not None and reverse.multiplier:
        return qty / reverse.multiplier

    logger.warning("No conversion from %s to %s, assuming base unit", unit, base_unit)
    return qty


def get_stock_level(item, for_update=False):
    queryset = InventoryStockLevel.objects
    if for_update:
        queryset = queryset.select_for_update()
    stock, _ = queryset.get_or_create(item=item)
    return stock


def signed_quantity(txn_type, qty):
    qty = abs(Decimal(qty))
    if txn_type in InventoryTransaction.OUTGOING_TYPES:
        return -qty
    return qty


def _resolve_unit(restaurant, unit_id):
    if not unit_id:
        return None
    unit = InventoryUnit.objects.filter(id=unit_id, restaurant=restaurant).first()
    if unit is None:
        raise POSError('unit_mismatch', status_code=status.HTTP_400_BAD_REQUEST)
    return unit


def create_transaction(restaurant, user, branch_id, item_id, txn_type, qty, unit_id=None, notes=''):
    """Manual stock movement by an owner. Returns (transaction, new on-hand)."""
    if txn_type not in InventoryTransaction.MANUAL_TYPES:
        raise POSError(
            'validation_error',
            message=f"Invalid transaction type. Must be one of: {', '.join(InventoryTransaction.MANUAL_TYPES)}",
        )
    try:
        qty = Decimal(str(qty))
    except (ArithmeticError, ValueError, TypeError):
        raise POSError('invalid_quantity')
    if qty <= 0:
        raise POSError('invalid_quantity')

    branch = Branch.objects.filter(id=branch_id, restaurant=restaurant).first()
    if branch is None:
        raise POSError('branch_mismatch', status_code=status.HTTP_403_FORBIDDEN)

    item = InventoryItem.objects.select_related('base_unit').filter(
        id=item_id, branch=branch, restaurant=restaurant
    ).first()
    if item is None:
        raise POSError('not_found', message='Item not found in this branch', status_code=status.HTTP_404_NOT_FOUND)

    unit = _resolve_unit(restaurant, unit_id)
    qty_in_base = round_qty(convert_to_base(qty, unit, item.base_unit))
    signed_qty = signed_quantity(txn_type, qty)
    signed_base = signed_quantity(txn_type, qty_in_base)

    with transaction.atomic():
        stock = get_stock_level(item, for_update=True)
        new_on_hand = stock.on_hand_base + signed_base
        if new_on_hand < 0:
            raise POSError(
                'insufficient_stock',
                message=f"Insufficient stock. Current: {stock.on_hand_base}, Requested: {abs(signed_base)}",
            )

        txn = InventoryTransaction.objects.create(
            restaurant=restaurant,
            branch=branch,
            item=item,
            txn_type=txn_type,
            qty=signed_qty,
            unit=unit or item.base_unit,
            qty_in_base=signed_base,
            reference_type='MANUAL',
            notes=notes or '',
            created_by=user,
        )
        stock.on_hand_base = new_on_hand
        stock.save(update_fields=['on_hand_base', 'updated_at'])

        AuditLog.record(
            f'INVENTORY_{txn_type}', 'inventory_transaction', txn.id,
            restaurant=restaurant, user=user,
            details={
                'item_id': str(item.id),
                'item_name': item.name,
                'branch_id': str(branch.id),
                'qty': str(signed_qty),
                'qty_in_base': str(signed_base),
                'new_on_hand': str(new_on_hand),
                'notes': notes or '',
            },
        )

    logger.info("Inventory %s on %s: %s (on hand %s)", txn_type, item.name, signed_base, new_on_hand)
    return txn, new_on_hand


def transfer(restaurant, user, from_branch_id, to_branch_id, lines, notes=''):
    """
    Move stock between two branches of the same restaurant.

    The destination item is the item with the same name in the destination
    branch; it is created (same base unit and levels) when missing.
    """
    if not from_branch_id or not to_branch_id or not lines:
        raise POSError('missing_fields')
    if str(from_branch_id) == str(to_branch_id):
        raise POSError('validation_error', message='Source and destination branches must be different')

    branches = {str(b.id): b for b in Branch.objects.filter(id__in=[from_branch_id, to_branch_id], restaurant=restaurant)}
    from_branch = branches.get(str(from_branch_id))
    to_branch = branches.get(str(to_branch_id))
    if from_branch is None or to_branch is None:
        raise POSError('branch_mismatch', status_code=status.HTTP_403_FORBIDDEN)

    moved = []
    with transaction.atomic():
        for line in lines:
            item = InventoryItem.objects.select_related('base_unit').filter(
                id=line.get('item_id'), branch=from_branch, restaurant=restaurant
            ).first()
            if item is None:
                raise POSError('not_found', message='Item not found in source branch', status_code=status.HTTP_404_NOT_FOUND)

            try:
                qty = Decimal(str(line.get('qty')))
            except (ArithmeticError, ValueError, TypeError):
                raise POSError('invalid_quantity')
            if qty <= 0:
                raise POSError('invalid_quantity')

            unit = _resolve_unit(restaurant, line.get('unit_id'))
            qty_in_base = round_qty(convert_to_base(qty, unit, item.base_unit))

            source_stock = get_stock_level(item, for_update=True)
            if source_stock.on_hand_base < qty_in_base:
                raise POSError(
                    'insufficient_stock',
                    message=f"Insufficient stock for {item.name}. Current: {source_stock.on_hand_base}, Requested: {qty_in_base}",
                )

            target, created = InventoryItem.objects.get_or_create(
                branch=to_branch,
                name=item.name,
                defaults={
                    'restaurant': restaurant,
                    'base_unit': item.base_unit,
                    'min_level': item.min_level,
                    'reorder_level': item.reorder_level,
                    'avg_cost': item.avg_cost,
                },
            )
            if created:
                logger.info("Created %s in branch %s for transfer", item.name, to_branch.name)

            InventoryTransaction.objects.create(
                restaurant=restaurant, branch=from_branch, item=item,
                txn_type='TRANSFER_OUT', qty=-qty, unit=unit or item.base_unit, qty_in_base=-qty_in_base,
                reference_type='TRANSFER', reference_id=str(to_branch.id),
                notes=f"Transfer to {to_branch.name}" + (f": {notes}" if notes else ''),
                created_by=user,
            )
            InventoryTransaction.objects.create(
                restaurant=restaurant, branch=to_branch, item=target,
                txn_type='TRANSFER_IN', qty=qty, unit=unit or item.base_unit, qty_in_base=qty_in_base,
                reference_type='TRANSFER', reference_id=str(from_branch.id),
                notes=f"Transfer from {from_branch.name}" + (f": {notes}" if notes else ''),
                created_by=user,
            )

            source_stock.on_hand_base -= qty_in_base
            source_stock.save(update_fields=['on_hand_base', 'updated_at'])
            target_stock = get_stock_level(target, for_update=True)
            target_stock.on_hand_base += qty_in_base
            target_stock.save(update_fields=['on_hand_base', 'updated_at'])

            moved.append({
                'item_id': str(item.id),
                'target_item_id': str(target.id),
                'name': item.name,
                'qty_in_base': str(qty_in_base),
            })

        AuditLog.record(
            'INVENTORY_TRANSFER', 'branch', from_branch.id,
            restaurant=restaurant, user=user,
            details={
                'from_branch_id': str(from_branch.id),
                'to_branch_id': str(to_branch.id),
                'lines': moved,
                'notes': notes or '',
            },
        )

    logger.info("Transferred %d items from %s to %s", len(moved), from_branch.name, to_branch.name)
    return moved


def _branch_item(line_item, branch, cache):
    """The recipe line's ingredient as stocked in ``branch``."""
    key = (line_item.name, branch.id)
    if key not in cache:
        if line_item.branch_id == branch.id:
            cache[key] = line_item
        else:
            cache[key] = InventoryItem.objects.filter(
                branch=branch, name=line_item.name, is_active=True
            ).first() or line_item
    return cache[key]


def _already_deducted(order):
    return InventoryTransaction.objects.filter(
        txn_type='SALE', reference_type='ORDER', reference_id=str(order.id)
    ).exists()


def deduct_for_order(order, user=None):
    """
    Take the recipe quantities of a paid order out of its branch's stock.

    Items may go negative: the deduction is still applied and a warning is
    returned for each of them.
    """
    result = {'success': False, 'warnings': [], 'error': None, 'deducted_count': 0}

    if order.branch_id is None:
        result['error'] = 'Order has no branch'
        return result
    if order.status in ('cancelled', 'voided') or not order.payments.exists():
        result['error'] = 'Order is not paid'
        return result
    if _already_deducted(order):
        result['success'] = True
        return result

    quantities = defaultdict(int)
    for item in order.items.filter(voided=False, menu_item__isnull=False):
        quantities[item.menu_item_id] += item.quantity

    if not quantities:
        result['success'] = True
        return result

    recipes = MenuItemRecipe.objects.filter(
        menu_item_id__in=quantities.keys(), is_active=True
    ).prefetch_related('lines__inventory_item')

    required = defaultdict(Decimal)
    items = {}
    cache = {}
    for recipe in recipes:
        for line in recipe.lines.all():
            stock_item = _branch_item(line.inventory_item, order.branch, cache)
            items[stock_item.id] = stock_item
            required[stock_item.id] += line.qty_in_base * quantities[recipe.menu_item_id]

    if not required:
        result['success'] = True
        return result

    try:
        with transaction.atomic():
            for item_id, qty in required.items():
                item = items[item_id]
                qty = round_qty(qty)
                stock = get_stock_level(item, for_update=True)
                new_on_hand = stock.on_hand_base - qty
                if new_on_hand < 0:
                    result['warnings'].append({
                        'inventory_item_id': str(item.id),
                        'name': item.name,
                        'current_on_hand': str(stock.on_hand_base),
                        'required': str(qty),
                        'new_on_hand': str(new_on_hand),
                    })

                InventoryTransaction.objects.create(
                    restaurant=order.restaurant,
                    branch=order.branch,
                    item=item,
                    txn_type='SALE',
                    qty=-qty,
                    unit=item.base_unit,
                    qty_in_base=-qty,
                    reference_type='ORDER',
                    reference_id=str(order.id),
                    notes='Auto deduction on payment',
                    created_by=user,
                )
                stock.on_hand_base = new_on_hand
                stock.save(update_fields=['on_hand_base', 'updated_at'])

            AuditLog.record(
                'INVENTORY_SALE_DEDUCTION_DONE', 'order', order.id,
                restaurant=order.restaurant, user=user,
                details={'order_number': order.order_number, 'deducted_count': len(required)},
            )
            if result['warnings']:
                AuditLog.record(
                    'INVENTORY_NEGATIVE_AFTER_SALE', 'order', order.id,
                    restaurant=order.restaurant, user=user,
                    details={'warnings': result['warnings'][:10]},
                )
    except Exception as exc:
        logger.exception("Inventory deduction failed for order %s", order.id)
        AuditLog.record(
            'INVENTORY_DEDUCTION_FAILED', 'order', order.id,
            restaurant=order.restaurant, user=user,
            details={'error': str(exc)},
        )
        result['warnings'] = []
        result['error'] = str(exc)
        return result

    result['success'] = True
    result['deducted_count'] = len(required)
    if result['warnings']:
        logger.warning("Order %s left %d items below zero", order.id, len(result['warnings']))
    return result


def low_stock_items(restaurant, branch=None):
    queryset = InventoryItem.objects.filter(restaurant=restaurant, is_active=True).select_related(
        'stock_level', 'base_unit', 'branch'
    )
    if branch is not None:
        queryset = queryset.filter(branch=branch)
    return [item for item in queryset if item.is_low_stock]


def save_recipe_lines(recipe, lines):
    """Replace a recipe's lines, computing each base quantity."""
    recipe.lines.all().delete()
    created = []
    for line in lines:
        item = line['inventory_item']
        unit = line.get('unit')
        qty = Decimal(line['qty'])
        if qty <= 0:
            raise POSError('recipe_invalid')
        created.append(RecipeLine.objects.create(
            recipe=recipe,
            inventory_item=item,
            qty=qty,
            unit=unit,
            qty_in_base=round_qty(convert_to_base(qty, unit, item.base_unit)),
        ))
    return created
