"""Pytest fixtures for submission dispatch tests."""
import copy
from datetime import datetime, timezone

import pytest

from src.database.postgres import PostgresDB
from src.integrations.clients.mocks.rpa_bots import MockRatingSheetClient, MockRpaBotClient
from src.integrations.policy.dispatch_service import DispatchService
from src.integrations.policy.rating_sheet_service import RatingSheetService
from src.submissions.controller import SubmissionController

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

GAS_STATION = {
    "corporationName": "Peachtree Fuel Stop LLC",
    "dba": "Peachtree Express",
    "address": "1234 Peachtree St NE, Atlanta, GA 30309",
    "contactName": "Jordan Avery Blake",
    "contactNumber": "(404) 555-0199",
    "contactEmail": "jordan@peachtreefuel.example",
    "operationDescription": "Gas station with convenience store",
    "ownershipType": "LLC",
    "applicantIs": "Owner",
    "fein": "58-3247891",
    "yearBuilt": 1998,
    "totalSqFootage": "3,200",
    "noOfStories": 1,
    "yearsExpInBusiness": 12,
    "noOfMPOs": 8,
    "constructionType": "Masonry Non-Combustible",
    "generalLiability": {
        "insideSalesYearly": "$850,000",
        "liquorSalesYearly": "$120,000",
        "gasolineSalesYearly": "600000",
    },
    "propertyCoverage": {
        "building": "$750,000",
        "bpp": "$150,000",
        "bi": "$100,000",
        "canopy": "$80,000",
        "pumps": "$60,000",
        "signs": "$15,000",
    },
}


@pytest.fixture
def db():
    return PostgresDB()


@pytest.fixture
def insured_payload():
    return copy.deepcopy(GAS_STATION)


@pytest.fixture
def bot_client():
    return MockRpaBotClient()


@pytest.fixture
def controller(db, bot_client):
    clock = lambda: NOW
    return SubmissionController(
        db,
        dispatch_service=DispatchService(bot_client, db, clock=clock),
        rating_sheet_service=RatingSheetService(MockRatingSheetClient(), db, clock=clock),
        clock=clock,
    )


@pytest.fixture
def submission_id(controller, insured_payload):
    insured = controller.create_insured_information(insured_payload)
    return controller.create_submission(insured_info_id=insured["id"])["id"]
