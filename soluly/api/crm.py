"""CRM endpoints: clients, leads, contacts, tags and contact activities."""

import logging
import uuid
from datetime import date, datetime
from typing import List, Optional

from litestar import Controller, delete, get, patch, post, put
from litestar.exceptions import ValidationException
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from soluly.api.deps import (
    apply_changes, get_by_display_id_or_404, get_or_404, list_for_organization, next_display_id,
)
from soluly.models import (
    Client, ClientContact, ClientStatus, Contact, ContactActivity, ContactActivityType,
    ContactTag, Lead, LeadStatus, Organization, Tag, utcnow,
)
from soluly.utils.logging import error_log

logger = logging.getLogger("Soluly.crm")


# --- Request/Response Schemas ---

class CreateClientRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    industry: Optional[str] = Field(default=None, max_length=100)
    contact_name: Optional[str] = Field(default=None, max_length=200)
    contact_email: str = Field(min_length=1, max_length=200)
    contact_phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = None
    status: ClientStatus = ClientStatus.ACTIVE
    total_revenue: float = Field(default=0, ge=0)
    contact_ids: List[uuid.UUID] = []
    primary_contact_id: Optional[uuid.UUID] = None
    display_id: Optional[str] = Field(default=None, max_length=20)


class UpdateClientRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    industry: Optional[str] = Field(default=None, max_length=100)
    contact_name: Optional[str] = Field(default=None, max_length=200)
    contact_email: Optional[str] = Field(default=None, min_length=1, max_length=200)
    contact_phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = None
    status: Optional[ClientStatus] = None
    total_revenue: Optional[float] = Field(default=None, ge=0)


class LinkContactsRequest(BaseModel):
    contact_ids: List[uuid.UUID] = Field(min_length=1)
    primary_contact_id: Optional[uuid.UUID] = None


class LinkedContactResponse(BaseModel):
    contact_id: uuid.UUID
    name: str
    email: Optional[str]
    is_primary: bool


class ClientResponse(BaseModel):
    id: uuid.UUID
    display_id: str
    name: str
    industry: Optional[str]
    contact_name: Optional[str]
    contact_email: str
    contact_phone: Optional[str]
    address: Optional[str]
    status: ClientStatus
    total_revenue: float
    contacts: List[LinkedContactResponse] = []
    created_at: datetime

    class Config:
        from_attributes = True

    @classmethod
    def from_client(cls, client: Client) -> "ClientResponse":
        response = cls.model_validate(client)
        response.contacts = [
            LinkedContactResponse(
                contact_id=link.contact_id,
                name=link.contact.name,
                email=link.contact.email,
                is_primary=link.is_primary,
            )
            for link in client.contact_links if link.contact
        ]
        return response


class CreateLeadRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    industry: Optional[str] = Field(default=None, max_length=100)
    contact_name: Optional[str] = Field(default=None, max_length=200)
    contact_email: str = Field(min_length=1, max_length=200)
    contact_phone: Optional[str] = Field(default=None, max_length=50)
    source: Optional[str] = Field(default=None, max_length=100)
    status: LeadStatus = LeadStatus.COLD
    display_id: Optional[str] = Field(default=None, max_length=20)


class UpdateLeadRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    industry: Optional[str] = Field(default=None, max_length=100)
    contact_name: Optional[str] = Field(default=None, max_length=200)
    contact_email: Optional[str] = Field(default=None, min_length=1, max_length=200)
    contact_phone: Optional[str] = Field(default=None, max_length=50)
    source: Optional[str] = Field(default=None, max_length=100)
    status: Optional[LeadStatus] = None


class LeadResponse(BaseModel):
    id: uuid.UUID
    display_id: str
    name: str
    industry: Optional[str]
    contact_name: Optional[str]
    contact_email: str
    contact_phone: Optional[str]
    source: Optional[str]
    status: LeadStatus
    created_at: datetime

    class Config:
        from_attributes = True


class TagRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    color: str = Field(default="#6366f1", max_length=20)


class UpdateTagRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    color: Optional[str] = Field(default=None, max_length=20)


class TagResponse(BaseModel):
    id: uuid.UUID
    name: str
    color: str

    class Config:
        from_attributes = True


class CreateContactRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    job_title: Optional[str] = Field(default=None, max_length=200)
    notes: Optional[str] = None
    company_id: Optional[uuid.UUID] = None
    tag_ids: List[uuid.UUID] = []
    display_id: Optional[str] = Field(default=None, max_length=20)


class UpdateContactRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    job_title: Optional[str] = Field(default=None, max_length=200)
    notes: Optional[str] = None
    company_id: Optional[uuid.UUID] = None


class ContactTagsRequest(BaseModel):
    tag_ids: List[uuid.UUID]


class ContactResponse(BaseModel):
    id: uuid.UUID
    display_id: str
    name: str
    email: Optional[str]
    phone: Optional[str]
    job_title: Optional[str]
    notes: Optional[str]
    company_id: Optional[uuid.UUID]
    company_name: Optional[str]
    tags: List[TagResponse]
    created_at: datetime

    class Config:
        from_attributes = True


class CreateContactActivityRequest(BaseModel):
    activity_type: ContactActivityType
    title: Optional[str] = Field(default=None, max_length=300)
    description: Optional[str] = None
    activity_date: Optional[datetime] = None
    call_duration: Optional[int] = Field(default=None, ge=0)
    call_outcome: Optional[str] = Field(default=None, max_length=30)
    email_subject: Optional[str] = Field(default=None, max_length=300)
    email_direction: Optional[str] = Field(default=None, max_length=10)
    meeting_location: Optional[str] = Field(default=None, max_length=200)
    task_due_date: Optional[date] = None
    task_status: Optional[str] = Field(default=None, max_length=20)


class ContactActivityResponse(BaseModel):
    id: uuid.UUID
    contact_id: uuid.UUID
    contact_name: Optional[str]
    activity_type: ContactActivityType
    title: Optional[str]
    description: Optional[str]
    activity_date: datetime
    call_duration: Optional[int]
    call_outcome: Optional[str]
    email_subject: Optional[str]
    email_direction: Optional[str]
    meeting_location: Optional[str]
    task_due_date: Optional[date]
    task_status: Optional[str]

    class Config:
        from_attributes = True


# --- Helper Functions ---

async def tags_for_organization(
    session: AsyncSession,
    organization: Organization,
    tag_ids: List[uuid.UUID],
) -> List[Tag]:
    """Load the tags named by ``tag_ids``, in order, rejecting foreign or unknown ids."""
    wanted = list(dict.fromkeys(tag_ids))
    if not wanted:
        return []
    stmt = select(Tag).where(Tag.organization_id == organization.id, Tag.id.in_(wanted))
    found = {tag.id: tag for tag in (await session.execute(stmt)).scalars().all()}
    missing = [str(t) for t in wanted if t not in found]
    if missing:
        raise ValidationException(f"Unknown tag(s): {', '.join(missing)}")
    return [found[t] for t in wanted]


async def link_contacts(
    session: AsyncSession,
    organization: Organization,
    client: Client,
    contact_ids: List[uuid.UUID],
    primary_contact_id: Optional[uuid.UUID] = None,
) -> int:
    """
    Bulk-link existing contacts to a client; returns how many links were added.

    When ``primary_contact_id`` is given it becomes the only primary link,
    whether it is linked here or was linked before.
    """
    wanted = list(dict.fromkeys(contact_ids))
    found = {}
    if wanted:
        stmt = select(Contact).where(
            Contact.organization_id == organization.id,
            Contact.id.in_(wanted),
        )
        found = {contact.id: contact for contact in (await session.execute(stmt)).scalars().all()}

    if primary_contact_id is not None:
        for link in client.contact_links:
            link.is_primary = link.contact_id == primary_contact_id

    already = {link.contact_id for link in client.contact_links}
    added = 0
    for contact_id in wanted:
        if contact_id in found and contact_id not in already:
            client.contact_links.append(ClientContact(
                contact_id=contact_id,
                contact=found[contact_id],
                is_primary=contact_id == primary_contact_id,
            ))
            added += 1
    return added


async def load_client(session: AsyncSession, client_id: uuid.UUID) -> Client:
    """Re-select a client with its contact links and their contacts loaded."""
    stmt = (
        select(Client)
        .where(Client.id == client_id)
        .options(selectinload(Client.contact_links).selectinload(ClientContact.contact))
        .execution_options(populate_existing=True)
    )
    return (await session.execute(stmt)).scalar_one()


# --- Controllers ---

class ClientsController(Controller):
    """API endpoints for client companies."""

    path = "/api/crm/clients"
    tags = ["crm"]

    @get("/")
    async def list_clients(
        self,
        organization: Organization,
        session: AsyncSession,
        status: Optional[ClientStatus] = None,
        search: Optional[str] = None,
    ) -> List[ClientResponse]:
        criteria = []
        if status:
            criteria.append(Client.status == status)
        if search:
            pattern = f"%{search.strip()}%"
            criteria.append(or_(Client.name.ilike(pattern), Client.contact_email.ilike(pattern)))
        stmt = (
            select(Client)
            .where(Client.organization_id == organization.id, *criteria)
            .options(selectinload(Client.contact_links).selectinload(ClientContact.contact))
            .order_by(Client.created_at.desc())
        )
        clients = (await session.execute(stmt)).scalars().all()
        return [ClientResponse.from_client(c) for c in clients]

    @get("/{client_id:uuid}")
    async def get_client(
        self,
        client_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> ClientResponse:
        client = await get_or_404(session, Client, client_id, organization)
        return ClientResponse.from_client(await load_client(session, client.id))

    @get("/by-display-id/{display_id:str}")
    async def get_client_by_display_id(
        self,
        display_id: str,
        organization: Organization,
        session: AsyncSession,
    ) -> ClientResponse:
        client = await get_by_display_id_or_404(session, Client, display_id, organization)
        return ClientResponse.from_client(await load_client(session, client.id))

    @post("/")
    async def create_client(
        self,
        data: CreateClientRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> ClientResponse:
        """
        Create a client, then link the given contacts.

        The client is committed first; linking runs as a second step and a
        failure there leaves the client without its contacts.
        """
        try:
            client = Client(
                organization_id=organization.id,
                **data.model_dump(exclude={"display_id", "contact_ids", "primary_contact_id"}),
                display_id=data.display_id or await next_display_id(session, Client, organization.id),
            )
            session.add(client)
            await session.commit()
            client = await load_client(session, client.id)
            logger.info(f"Client created: {client.display_id}")
        except Exception as e:
            error_log(
                "Failed to create client",
                exc=e,
                organization=organization, name=data.name,
            )
            raise

        if data.contact_ids:
            try:
                added = await link_contacts(
                    session, organization, client, data.contact_ids, data.primary_contact_id,
                )
                await session.commit()
                client = await load_client(session, client.id)
                logger.info(f"Linked {added} contact(s) to client {client.display_id}")
            except Exception as e:
                error_log(
                    "Failed to link contacts to client",
                    exc=e,
                    organization=organization, record=client, contact_ids=len(data.contact_ids),
                )
                raise

        return ClientResponse.from_client(client)

    @patch("/{client_id:uuid}")
    async def update_client(
        self,
        client_id: uuid.UUID,
        data: UpdateClientRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> ClientResponse:
        client = await get_or_404(session, Client, client_id, organization)
        apply_changes(client, data)
        await session.commit()
        return ClientResponse.from_client(await load_client(session, client.id))

    @post("/{client_id:uuid}/contacts")
    async def add_client_contacts(
        self,
        client_id: uuid.UUID,
        data: LinkContactsRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> ClientResponse:
        """Link more existing contacts to a client; already-linked ones are skipped."""
        client = await get_or_404(session, Client, client_id, organization)
        added = await link_contacts(
            session, organization, client, data.contact_ids, data.primary_contact_id,
        )
        await session.commit()
        client = await load_client(session, client.id)
        logger.info(f"Linked {added} contact(s) to client {client.display_id}")
        return ClientResponse.from_client(client)

    @delete("/{client_id:uuid}/contacts/{contact_id:uuid}")
    async def remove_client_contact(
        self,
        client_id: uuid.UUID,
        contact_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> None:
        client = await get_or_404(session, Client, client_id, organization)
        client.contact_links = [
            link for link in client.contact_links if link.contact_id != contact_id
        ]
        await session.commit()

    @delete("/{client_id:uuid}")
    async def delete_client(
        self,
        client_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> None:
        client = await get_or_404(session, Client, client_id, organization)
        await session.delete(client)
        await session.commit()
        logger.info(f"Client deleted: {client_id}")


class LeadsController(Controller):
    """API endpoints for leads."""

    path = "/api/crm/leads"
    tags = ["crm"]

    @get("/")
    async def list_leads(
        self,
        organization: Organization,
        session: AsyncSession,
        status: Optional[LeadStatus] = None,
    ) -> List[LeadResponse]:
        criteria = [Lead.status == status] if status else []
        leads = await list_for_organization(session, Lead, organization, *criteria)
        return [LeadResponse.model_validate(lead) for lead in leads]

    @get("/{lead_id:uuid}")
    async def get_lead(
        self,
        lead_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> LeadResponse:
        lead = await get_or_404(session, Lead, lead_id, organization)
        return LeadResponse.model_validate(lead)

    @get("/by-display-id/{display_id:str}")
    async def get_lead_by_display_id(
        self,
        display_id: str,
        organization: Organization,
        session: AsyncSession,
    ) -> LeadResponse:
        lead = await get_by_display_id_or_404(session, Lead, display_id, organization)
        return LeadResponse.model_validate(lead)

    @post("/")
    async def create_lead(
        self,
        data: CreateLeadRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> LeadResponse:
        try:
            lead = Lead(
                organization_id=organization.id,
                **data.model_dump(exclude={"display_id"}),
                display_id=data.display_id or await next_display_id(session, Lead, organization.id),
            )
            session.add(lead)
            await session.commit()
            await session.refresh(lead)
            logger.info(f"Lead created: {lead.display_id}")
            return LeadResponse.model_validate(lead)
        except Exception as e:
            error_log(
                "Failed to create lead",
                exc=e,
                organization=organization, name=data.name,
            )
            raise

    @patch("/{lead_id:uuid}")
    async def update_lead(
        self,
        lead_id: uuid.UUID,
        data: UpdateLeadRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> LeadResponse:
        lead = await get_or_404(session, Lead, lead_id, organization)
        apply_changes(lead, data)
        await session.commit()
        await session.refresh(lead)
        return LeadResponse.model_validate(lead)

    @post("/{lead_id:uuid}/convert")
    async def convert_lead(
        self,
        lead_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> ClientResponse:
        """
        Turn a lead into an active client.

        Two committed steps: the client is created, then the lead is deleted.
        If the delete fails the client stays and the lead remains too.
        """
        lead = await get_or_404(session, Lead, lead_id, organization)
        lead_display_id = lead.display_id

        client = Client(
            organization_id=organization.id,
            display_id=await next_display_id(session, Client, organization.id),
            name=lead.name,
            industry=lead.industry,
            contact_name=lead.contact_name,
            contact_email=lead.contact_email,
            contact_phone=lead.contact_phone,
            status=ClientStatus.ACTIVE,
        )
        session.add(client)
        await session.commit()
        client = await load_client(session, client.id)

        try:
            await session.delete(lead)
            await session.commit()
        except Exception as e:
            error_log(
                "Converted lead could not be deleted",
                exc=e,
                organization=organization, record=client, lead=lead_display_id,
            )
            raise

        logger.info(f"Lead {lead_display_id} converted to client {client.display_id}")
        return ClientResponse.from_client(client)

    @delete("/{lead_id:uuid}")
    async def delete_lead(
        self,
        lead_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> None:
        lead = await get_or_404(session, Lead, lead_id, organization)
        await session.delete(lead)
        await session.commit()


class TagsController(Controller):
    """API endpoints for contact tags."""

    path = "/api/crm/tags"
    tags = ["crm"]

    @get("/")
    async def list_tags(self, organization: Organization, session: AsyncSession) -> List[TagResponse]:
        tags = await list_for_organization(session, Tag, organization, order_by=Tag.name.asc())
        return [TagResponse.model_validate(t) for t in tags]

    @post("/")
    async def create_tag(
        self,
        data: TagRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> TagResponse:
        tag = Tag(organization_id=organization.id, name=data.name.strip(), color=data.color)
        session.add(tag)
        await session.commit()
        await session.refresh(tag)
        return TagResponse.model_validate(tag)

    @get("/{tag_id:uuid}")
    async def get_tag(
        self,
        tag_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> TagResponse:
        tag = await get_or_404(session, Tag, tag_id, organization)
        return TagResponse.model_validate(tag)

    @patch("/{tag_id:uuid}")
    async def update_tag(
        self,
        tag_id: uuid.UUID,
        data: UpdateTagRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> TagResponse:
        tag = await get_or_404(session, Tag, tag_id, organization)
        apply_changes(tag, data)
        await session.commit()
        await session.refresh(tag)
        return TagResponse.model_validate(tag)

    @delete("/{tag_id:uuid}")
    async def delete_tag(
        self,
        tag_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> None:
        tag = await get_or_404(session, Tag, tag_id, organization)
        await session.delete(tag)
        await session.commit()


class ContactsController(Controller):
    """API endpoints for contacts and their activity log."""

    path = "/api/crm/contacts"
    tags = ["crm"]

    @get("/")
    async def list_contacts(
        self,
        organization: Organization,
        session: AsyncSession,
        company_id: Optional[uuid.UUID] = None,
        tag_id: Optional[uuid.UUID] = None,
        search: Optional[str] = None,
    ) -> List[ContactResponse]:
        """Contacts ordered by name."""
        criteria = []
        if company_id:
            criteria.append(Contact.company_id == company_id)
        if tag_id:
            criteria.append(Contact.tag_links.any(ContactTag.tag_id == tag_id))
        if search:
            pattern = f"%{search.strip()}%"
            criteria.append(or_(
                Contact.name.ilike(pattern),
                Contact.email.ilike(pattern),
                Contact.job_title.ilike(pattern),
            ))
        contacts = await list_for_organization(
            session, Contact, organization, *criteria,
            order_by=Contact.name.asc(),
        )
        return [ContactResponse.model_validate(c) for c in contacts]

    @get("/{contact_id:uuid}")
    async def get_contact(
        self,
        contact_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> ContactResponse:
        contact = await get_or_404(session, Contact, contact_id, organization)
        return ContactResponse.model_validate(contact)

    @get("/by-display-id/{display_id:str}")
    async def get_contact_by_display_id(
        self,
        display_id: str,
        organization: Organization,
        session: AsyncSession,
    ) -> ContactResponse:
        contact = await get_by_display_id_or_404(session, Contact, display_id, organization)
        return ContactResponse.model_validate(contact)

    @post("/")
    async def create_contact(
        self,
        data: CreateContactRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> ContactResponse:
        if data.company_id is not None:
            await get_or_404(session, Client, data.company_id, organization)
        tags = await tags_for_organization(session, organization, data.tag_ids)
        try:
            contact = Contact(
                organization_id=organization.id,
                **data.model_dump(exclude={"display_id", "tag_ids"}),
                display_id=data.display_id or await next_display_id(session, Contact, organization.id),
            )
            contact.tag_links = [ContactTag(tag=tag) for tag in tags]
            session.add(contact)
            await session.commit()
            await session.refresh(contact)
            logger.info(f"Contact created: {contact.display_id}")
            return ContactResponse.model_validate(contact)
        except Exception as e:
            error_log(
                "Failed to create contact",
                exc=e,
                organization=organization, name=data.name,
            )
            raise

    @patch("/{contact_id:uuid}")
    async def update_contact(
        self,
        contact_id: uuid.UUID,
        data: UpdateContactRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> ContactResponse:
        contact = await get_or_404(session, Contact, contact_id, organization)
        if data.company_id is not None:
            await get_or_404(session, Client, data.company_id, organization)
        apply_changes(contact, data)
        await session.commit()
        await session.refresh(contact)
        return ContactResponse.model_validate(contact)

    @put("/{contact_id:uuid}/tags")
    async def replace_tags(
        self,
        contact_id: uuid.UUID,
        data: ContactTagsRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> ContactResponse:
        """Make ``tag_ids`` the contact's exact tag set."""
        contact = await get_or_404(session, Contact, contact_id, organization)
        tags = await tags_for_organization(session, organization, data.tag_ids)
        wanted = {tag.id for tag in tags}
        keep = [link for link in contact.tag_links if link.tag_id in wanted]
        present = {link.tag_id for link in keep}
        contact.tag_links = keep + [
            ContactTag(tag=tag) for tag in tags if tag.id not in present
        ]
        await session.commit()
        await session.refresh(contact)
        return ContactResponse.model_validate(contact)

    @delete("/{contact_id:uuid}")
    async def delete_contact(
        self,
        contact_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> None:
        contact = await get_or_404(session, Contact, contact_id, organization)
        await session.delete(contact)
        await session.commit()
        logger.info(f"Contact deleted: {contact_id}")

    @get("/{contact_id:uuid}/activities")
    async def list_contact_activities(
        self,
        contact_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> List[ContactActivityResponse]:
        await get_or_404(session, Contact, contact_id, organization)
        activities = await list_for_organization(
            session, ContactActivity, organization,
            ContactActivity.contact_id == contact_id,
            order_by=ContactActivity.activity_date.desc(),
        )
        return [ContactActivityResponse.model_validate(a) for a in activities]

    @post("/{contact_id:uuid}/activities")
    async def log_contact_activity(
        self,
        contact_id: uuid.UUID,
        data: CreateContactActivityRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> ContactActivityResponse:
        contact = await get_or_404(session, Contact, contact_id, organization)
        activity = ContactActivity(
            organization_id=organization.id,
            contact_id=contact.id,
            **data.model_dump(exclude={"activity_date"}),
            activity_date=data.activity_date or utcnow(),
        )
        session.add(activity)
        await session.commit()
        await session.refresh(activity)
        logger.info(f"Logged {activity.activity_type.value} for contact {contact.display_id}")
        return ContactActivityResponse.model_validate(activity)


class ContactActivitiesController(Controller):
    """Organization-wide contact activity log."""

    path = "/api/crm/activities"
    tags = ["crm"]

    @get("/")
    async def list_activities(
        self,
        organization: Organization,
        session: AsyncSession,
        activity_type: Optional[ContactActivityType] = None,
    ) -> List[ContactActivityResponse]:
        criteria = [ContactActivity.activity_type == activity_type] if activity_type else []
        activities = await list_for_organization(
            session, ContactActivity, organization, *criteria,
            order_by=ContactActivity.activity_date.desc(),
        )
        return [ContactActivityResponse.model_validate(a) for a in activities]

    @delete("/{activity_id:uuid}")
    async def delete_activity(
        self,
        activity_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> None:
        activity = await get_or_404(session, ContactActivity, activity_id, organization)
        await session.delete(activity)
        await session.commit()
