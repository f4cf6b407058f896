from soluly.api import (
    ClientsController,
    ContactActivitiesController,
    ContactsController,
    EmailsController,
    FeatureRequestsController,
    FeedbackController,
    InvitationsController,
    LeadsController,
    OrganizationsController,
    ProjectionsController,
    ProjectsController,
    QuotesController,
    ReportsController,
    SettingsController,
    TagsController,
    TeamController,
    TicketsController,
    websocket_handler,
)

ROUTES = [
    OrganizationsController,
    SettingsController,
    InvitationsController,
    TeamController,
    ProjectsController,
    TicketsController,
    FeatureRequestsController,
    FeedbackController,
    QuotesController,
    ClientsController,
    LeadsController,
    ContactsController,
    ContactActivitiesController,
    TagsController,
    EmailsController,
    ReportsController,
    ProjectionsController,
    websocket_handler,
]
