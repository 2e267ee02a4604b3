"""Plain-dict views of ORM rows shared by several routers."""
from __future__ import annotations

from backend.app.db.models.models_v1 import (
    Article,
    Inventory,
    InventoryItem,
    Order,
    OrderItem,
    OrderMobilfunk,
    SerialNumber,
    StockMovement,
    Supplier,
    WarehouseLocation,
)
from backend.services.orders import OrderView


def article_dict(a: Article) -> dict:
    return {
        "id": a.id,
        "sku": a.sku,
        "name": a.name,
        "description": a.description,
        "category": a.category,
        "product_group": a.product_group,
        "product_sub_group": a.product_sub_group,
        "avg_purchase_price": a.avg_purchase_price,
        "unit": a.unit,
        "min_stock_level": a.min_stock_level,
        "current_stock": a.current_stock,
        "incoming_stock": a.incoming_stock,
        "notes": a.notes,
        "is_active": a.is_active,
    }


def article_ref(a: Article | None) -> dict | None:
    if a is None:
        return None
    return {
        "id": a.id,
        "sku": a.sku,
        "name": a.name,
        "category": a.category,
        "unit": a.unit,
        "current_stock": a.current_stock,
        "incoming_stock": a.incoming_stock,
    }


def supplier_dict(s: Supplier) -> dict:
    return {
        "id": s.id,
        "name": s.name,
        "contact_name": s.contact_name,
        "email": s.email,
        "phone": s.phone,
        "website": s.website,
        "notes": s.notes,
        "is_active": s.is_active,
    }


def location_dict(l: WarehouseLocation) -> dict:
    return {"id": l.id, "name": l.name, "description": l.description, "is_active": l.is_active}


def serial_dict(sn: SerialNumber) -> dict:
    return {
        "id": sn.id,
        "serial_no": sn.serial_no,
        "article_id": sn.article_id,
        "status": sn.status,
        "is_used": sn.is_used,
        "location_id": sn.location_id,
        "order_item_id": sn.order_item_id,
        "notes": sn.notes,
        "created_at": sn.created_at,
    }


def movement_dict(mv: StockMovement) -> dict:
    return {
        "id": mv.id,
        "article_id": mv.article_id,
        "type": mv.type,
        "quantity": mv.quantity,
        "reason": mv.reason,
        "performed_by": mv.performed_by,
        "order_id": mv.order_id,
        "order_item_id": mv.order_item_id,
        "created_at": mv.created_at,
    }


def order_item_dict(i: OrderItem) -> dict:
    return {
        "id": i.id,
        "article": article_ref(i.article),
        "free_text": i.free_text,
        "quantity": i.quantity,
        "needs_ordering": i.needs_ordering,
        "supplier_id": i.supplier_id,
        "supplier_order_no": i.supplier_order_no,
        "ordered_at": i.ordered_at,
        "ordered_by": i.ordered_by,
        "received_qty": i.received_qty,
        "received_at": i.received_at,
        "picked_qty": i.picked_qty,
        "picked_by": i.picked_by,
        "picked_at": i.picked_at,
    }


def mobilfunk_dict(m: OrderMobilfunk) -> dict:
    return {
        "id": m.id,
        "order_id": m.order_id,
        "type": m.type,
        "sim_type": m.sim_type,
        "tariff": m.tariff,
        "phone_note": m.phone_note,
        "sim_note": m.sim_note,
        "ordered": m.ordered,
        "ordered_by": m.ordered_by,
        "ordered_at": m.ordered_at,
        "provider_order_no": m.provider_order_no,
        "received": m.received,
        "received_at": m.received_at,
        "setup_done": m.setup_done,
        "setup_by": m.setup_by,
        "setup_at": m.setup_at,
        "imei": m.imei,
        "phone_number": m.phone_number,
        "delivered": m.delivered,
    }


def order_header(o: Order) -> dict:
    return {
        "id": o.id,
        "order_number": o.order_number,
        "ordered_by": o.ordered_by,
        "ordered_for": o.ordered_for,
        "cost_center": o.cost_center,
        "delivery_method": o.delivery_method,
        "shipping_company": o.shipping_company,
        "shipping_street": o.shipping_street,
        "shipping_zip": o.shipping_zip,
        "shipping_city": o.shipping_city,
        "pickup_by": o.pickup_by,
        "notes": o.notes,
        "status": o.status,
        "technician_name": o.technician_name,
        "proc_done_at": o.proc_done_at,
        "setup_done_at": o.setup_done_at,
        "tech_done_at": o.tech_done_at,
        "shipped_at": o.shipped_at,
        "shipped_by": o.shipped_by,
        "tracking_number": o.tracking_number,
        "created_at": o.created_at,
    }


def order_dict(view: OrderView) -> dict:
    o = view.order
    data = order_header(o)
    data.update(
        {
            "computed_status": view.computed_status,
            "stock_availability": view.stock_availability,
            "items": [order_item_dict(i) for i in o.items],
            "mobilfunk": [mobilfunk_dict(m) for m in o.mobilfunk],
        }
    )
    return data


def inventory_item_dict(i: InventoryItem) -> dict:
    return {
        "id": i.id,
        "article": article_ref(i.article),
        "expected_qty": i.expected_qty,
        "counted_qty": i.counted_qty,
        "difference": i.difference,
        "checked": i.checked,
        "checked_by": i.checked_by,
        "checked_at": i.checked_at,
        "notes": i.notes,
    }


def inventory_header(inv: Inventory) -> dict:
    return {
        "id": inv.id,
        "name": inv.name,
        "started_by": inv.started_by,
        "status": inv.status,
        "notes": inv.notes,
        "completed_at": inv.completed_at,
        "created_at": inv.created_at,
    }
