"""Soluly API routes."""

from soluly.api.crm import (
    ClientsController, ContactActivitiesController, ContactsController, LeadsController,
    TagsController,
)
from soluly.api.emails import EmailsController
from soluly.api.feature_requests import FeatureRequestsController
from soluly.api.feedback import FeedbackController
from soluly.api.organizations import (
    InvitationsController, OrganizationsController, SettingsController,
)
from soluly.api.projections import ProjectionsController
from soluly.api.projects import ProjectsController
from soluly.api.quotes import QuotesController
from soluly.api.realtime import websocket_handler
from soluly.api.reports import ReportsController
from soluly.api.team import TeamController
from soluly.api.tickets import TicketsController

__all__ = [
    "ClientsController",
    "ContactActivitiesController",
    "ContactsController",
    "EmailsController",
    "FeatureRequestsController",
    "FeedbackController",
    "InvitationsController",
    "LeadsController",
    "OrganizationsController",
    "ProjectionsController",
    "ProjectsController",
    "QuotesController",
    "ReportsController",
    "SettingsController",
    "TagsController",
    "TeamController",
    "TicketsController",
    "websocket_handler",
]
