"""Trading journal API."""

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from tradevault.database import get_session
from tradevault.models.journal_entry import JournalEntry
from tradevault.models.user import User
from tradevault.schemas.journal import JournalEntryCreate, JournalEntryUpdate
from tradevault.api.deps import get_current_user

router = APIRouter(prefix="/api/journal", tags=["journal"])


def _get_owned_entry(session: Session, entry_id: int, user: User) -> JournalEntry:
    entry = session.get(JournalEntry, entry_id)
    if not entry or entry.user_id != user.id:
        raise HTTPException(status_code=404, detail="Entry not found")
    return entry


@router.get("")
def list_entries(
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    stmt = (
        select(JournalEntry)
        .where(JournalEntry.user_id == user.id)
        .order_by(JournalEntry.entry_date.desc())
    )
    return session.exec(stmt).all()


@router.post("", status_code=201)
def create_entry(
    data: JournalEntryCreate,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    entry = JournalEntry(user_id=user.id, **data.model_dump())
    session.add(entry)
    session.commit()
    session.refresh(entry)
    return entry


@router.put("/{entry_id}")
def update_entry(
    entry_id: int,
    data: JournalEntryUpdate,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    entry = _get_owned_entry(session, entry_id, user)
    for key, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(entry, key, value)
    session.add(entry)
    session.commit()
    session.refresh(entry)
    return entry


@router.delete("/{entry_id}", status_code=204)
def delete_entry(
    entry_id: int,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    entry = _get_owned_entry(session, entry_id, user)
    session.delete(entry)
    session.commit()
