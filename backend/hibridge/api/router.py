from fastapi import APIRouter

from hibridge.api.balances import member_balance_router
from hibridge.api.compliance import compliance_router
from hibridge.api.consensus import consensus_router
from hibridge.api.requests import requests_router
from hibridge.api.schedules import schedules_router
from hibridge.api.teams import team_detail_router, teams_router
from hibridge.api.votes import votes_router

api_router = APIRouter()
api_router.include_router(teams_router)
api_router.include_router(team_detail_router)
api_router.include_router(schedules_router)
api_router.include_router(votes_router)
api_router.include_router(consensus_router)
api_router.include_router(compliance_router)
api_router.include_router(member_balance_router)
api_router.include_router(requests_router)
