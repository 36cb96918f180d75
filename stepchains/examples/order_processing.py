"""
Order processing example demonstrating a business workflow with StepChains.
"""

import asyncio

from stepchains import Middleware, Process, TimingMiddleware, exit, switch


# Steps
def validate_order(context):
    order = context.get('order')

    if not order:
        return exit({'error': "Order is missing"})

    if not order.get('items'):
        return exit({'error': "Order has no items"})

    if not order.get('customer_id'):
        return exit({'error': "Customer ID is missing"})

    print(f"✓ Order validated for customer {order['customer_id']}")
    return {'payment_method': order.get('payment_method', 'credit_card')}


def calculate_totals(context):
    items = context['order']['items']

    subtotal = sum(item['price'] * item['quantity'] for item in items)
    tax = subtotal * 0.08  # 8% tax
    total = subtotal + tax

    print(f"✓ Calculated totals - Subtotal: ${subtotal:.2f}, Tax: ${tax:.2f}, Total: ${total:.2f}")
    return {'subtotal': subtotal, 'tax': tax, 'total': total}


async def check_inventory(context):
    for item in context['order']['items']:
        print(f"  Checking inventory for {item['name']}...")
        await asyncio.sleep(0.01)

    # Items without a 'stock' entry are assumed to be available
    out_of_stock = [
        item['name'] for item in context['order']['items']
        if 'stock' in item and item['stock'] < item['quantity']
    ]
    if out_of_stock:
        return exit(error="Out of stock", items=out_of_stock)

    print("✓ Inventory check passed")
    return {'inventory_available': True}


async def charge_card(context):
    await asyncio.sleep(0.01)
    payment_id = f"PAY-{hash(str(context['total'])) % 100000:05d}"
    print(f"✓ Card charged: {payment_id} (${context['total']:.2f})")
    return {'payment_id': payment_id, 'payment_status': 'completed'}


def send_invoice(context):
    print(f"✓ Invoice sent for ${context['total']:.2f}")
    return {'payment_id': None, 'payment_status': 'invoiced'}


def create_shipment(context):
    order = context['order']

    shipment_id = f"SHIP-{hash(str(order['customer_id'])) % 100000:05d}"
    tracking_number = f"TRACK-{shipment_id[-5:]}-{hash(str(order)) % 10000:04d}"

    print(f"✓ Shipment created: {shipment_id} (Tracking: {tracking_number})")
    return {'shipment_id': shipment_id, 'tracking_number': tracking_number}


def send_confirmation_email(context):
    customer_email = context['order'].get('customer_email', 'customer@example.com')

    print(f"✓ Confirmation email sent to {customer_email}")
    print(f"  Order Total: ${context['total']:.2f}")
    print(f"  Payment: {context.get('payment_status', 'pending')}")
    print(f"  Tracking: {context['tracking_number']}")


# Middleware
class OrderLoggingMiddleware(Middleware):
    async def around_step(self, step, context, next_callable):
        order_id = (context.get('order') or {}).get('id', 'N/A')

        print(f"\n[{order_id}] → {step.name}")
        return await next_callable(context)


# Processes
pricing = Process(calculate_totals, check_inventory, name='pricing')

fulfilment = Process(
    switch('payment_method', {
        'credit_card': charge_card,
        'invoice': send_invoice,
    }),
    create_shipment,
    send_confirmation_email,
    name='fulfilment',
)


def build_order_process():
    timing = TimingMiddleware()
    process = (Process(validate_order, pricing, fulfilment, name='order')
        .use_middleware(OrderLoggingMiddleware())
        .use_middleware(timing))
    return process, timing


async def process_order(order):
    process, timing = build_order_process()
    result = await process.start({'order': order})

    print()
    if result.exited:
        print(f"✗ Order stopped: {result.get('error')} {result.get('items', '')}")
    else:
        print(f"✓ Order completed: {result['tracking_number']}")

    print("\n" + "=" * 60)
    print("Performance Report")
    print("=" * 60)
    for entry in timing.get_report():
        print(f"{entry['step']:30} avg: {entry['avg_ms']:6.2f}ms  calls: {entry['calls']}")

    return result


async def main():
    orders = [
        {
            'id': 'ORD-001',
            'customer_id': 'CUST-42',
            'customer_email': 'alice@example.com',
            'items': [
                {'name': 'Widget', 'price': 19.99, 'quantity': 2},
                {'name': 'Gadget', 'price': 5.00, 'quantity': 1},
            ],
        },
        {
            'id': 'ORD-002',
            'customer_id': 'CUST-7',
            'payment_method': 'invoice',
            'items': [{'name': 'Crate', 'price': 120.00, 'quantity': 1}],
        },
        {
            'id': 'ORD-003',
            'customer_id': 'CUST-9',
            'items': [{'name': 'Rare part', 'price': 99.00, 'quantity': 3, 'stock': 1}],
        },
    ]

    for order in orders:
        print("=" * 60)
        print(f"Processing {order['id']}")
        print("=" * 60)
        await process_order(order)
        print()


if __name__ == "__main__":
    asyncio.run(main())
