from hostel_booking.services.inventory.inventory_ledger import InventoryLedger, InventorySnapshot

__all__ = ["InventoryLedger", "InventorySnapshot"]
