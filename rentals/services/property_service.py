import logging
from typing import Optional, List
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from rentals.database.models import Property, Unit, UnitStatus
from rentals.database.errors import commit_or_raise, delete_or_raise, NotFoundError
from rentals.schemas import validation


# --- Properties ---

async def create_property(
    session: AsyncSession,
    name: str,
    address: str,
    city: str,
    postal_code: Optional[str] = None,
    owner_user_id: Optional[int] = None
) -> Property:
    """Create a property. (name, address) must be unique."""
    prop = Property(
        owner_user_id=owner_user_id,
        name=name,
        address=address,
        city=city,
        postal_code=postal_code
    )
    session.add(prop)
    await commit_or_raise(session)
    logging.info(f"Property created: {prop.property_id} - {prop.name}")
    return prop

async def get_property(session: AsyncSession, property_id: int) -> Property:
    stmt = (
        select(Property)
        .where(Property.property_id == property_id)
        .options(selectinload(Property.units))
    )
    result = await session.execute(stmt)
    prop = result.scalar_one_or_none()
    if not prop:
        raise NotFoundError(f"Property ID {property_id} not found")
    return prop

async def list_properties(session: AsyncSession, owner_user_id: Optional[int] = None) -> List[Property]:
    stmt = select(Property).order_by(Property.property_id)
    if owner_user_id:
        stmt = stmt.where(Property.owner_user_id == owner_user_id)
    result = await session.execute(stmt)
    return list(result.scalars().all())

async def set_property_owner(session: AsyncSession, property_id: int, owner_user_id: Optional[int]) -> Property:
    """Pass None to clear the owner."""
    prop = await get_property(session, property_id)
    prop.owner_user_id = owner_user_id
    await commit_or_raise(session)
    return prop

async def delete_property(session: AsyncSession, property_id: int) -> None:
    """
    Delete a property together with its units.

    Fails with ReferentialIntegrityError if any of those units still has a lease.
    """
    await delete_or_raise(
        session, delete(Property).where(Property.property_id == property_id), f"Property ID {property_id}"
    )
    logging.info(f"Property deleted: {property_id}")


# --- Units ---

async def create_unit(
    session: AsyncSession,
    property_id: int,
    unit_number: str,
    monthly_rent,
    bedrooms: int = 0,
    floor: Optional[str] = None,
    area_sq_m=None,
    status: UnitStatus = UnitStatus.available
) -> Unit:
    """Create a unit. unit_number is unique within its property."""
    unit = Unit(
        property_id=property_id,
        unit_number=unit_number,
        bedrooms=bedrooms,
        floor=floor,
        area_sq_m=validation.area(area_sq_m),
        status=status,
        monthly_rent=validation.optional_money(monthly_rent)
    )
    session.add(unit)
    await commit_or_raise(session)
    logging.info(f"Unit created: {unit.unit_id} - {unit.unit_number} in property {property_id}")
    return unit

async def get_unit(session: AsyncSession, unit_id: int) -> Unit:
    unit = await session.get(Unit, unit_id)
    if not unit:
        raise NotFoundError(f"Unit ID {unit_id} not found")
    return unit

async def get_unit_by_number(session: AsyncSession, property_id: int, unit_number: str) -> Optional[Unit]:
    stmt = select(Unit).where(Unit.property_id == property_id, Unit.unit_number == unit_number)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()

async def list_units(
    session: AsyncSession,
    property_id: Optional[int] = None,
    status: Optional[UnitStatus] = None
) -> List[Unit]:
    stmt = select(Unit).order_by(Unit.unit_id)
    if property_id:
        stmt = stmt.where(Unit.property_id == property_id)
    if status:
        stmt = stmt.where(Unit.status == status)
    result = await session.execute(stmt)
    return list(result.scalars().all())

async def set_unit_status(session: AsyncSession, unit_id: int, status: UnitStatus) -> Unit:
    unit = await get_unit(session, unit_id)
    unit.status = status
    await commit_or_raise(session)
    return unit

async def set_unit_rent(session: AsyncSession, unit_id: int, monthly_rent) -> Unit:
    """Change the asking rent. Existing leases keep their own rent_amount."""
    unit = await get_unit(session, unit_id)
    unit.monthly_rent = validation.money(monthly_rent)
    await commit_or_raise(session)
    logging.info(f"Unit {unit_id} rent set to {unit.monthly_rent}")
    return unit

async def delete_unit(session: AsyncSession, unit_id: int) -> None:
    """Blocked (ReferentialIntegrityError) while a lease references the unit."""
    await delete_or_raise(session, delete(Unit).where(Unit.unit_id == unit_id), f"Unit ID {unit_id}")
    logging.info(f"Unit deleted: {unit_id}")
