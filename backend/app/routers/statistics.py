"""
Statistics Router
Read/write API over the habit statistics for the UI collaborator.
"""

import logging
from typing import Any, List

from fastapi import APIRouter, Body, Depends, HTTPException, Path

from touch_model import StatisticsService

from app.models.schemas import (
    DailyStatsResponse,
    ExportDocument,
    HabitSettingsResponse,
    HabitSettingsUpdate,
    ImportResult,
    MeditationCreate,
    MeditationRecommendation,
    MonthlyStatsResponse,
    TodaySummary,
    TouchCreate,
    TouchEventResponse,
    UserProgressResponse,
)
from app.services.statistics_provider import get_statistics_service

logger = logging.getLogger("notouch.api.statistics")

router = APIRouter(prefix="/api/statistics", tags=["Statistics"])


@router.get("/today", response_model=TodaySummary)
def get_today(service: StatisticsService = Depends(get_statistics_service)):
    """Live statistics for the current local day"""
    return TodaySummary(
        stats=DailyStatsResponse.from_stats(service.get_today_stats()),
        should_recommend_meditation=service.should_recommend_meditation(),
    )


@router.get("/today/events", response_model=List[TouchEventResponse])
def get_today_events(service: StatisticsService = Depends(get_statistics_service)):
    return [TouchEventResponse.from_event(e) for e in service.get_today_events()]


@router.get("/weekly", response_model=List[DailyStatsResponse])
def get_weekly(service: StatisticsService = Depends(get_statistics_service)):
    """Last seven days, oldest first, ending with today"""
    return [DailyStatsResponse.from_stats(s) for s in service.get_weekly_stats()]


@router.get("/monthly/{year}/{month}", response_model=MonthlyStatsResponse)
def get_monthly(
    year: int = Path(ge=1970, le=9999),
    month: int = Path(ge=1, le=12),
    service: StatisticsService = Depends(get_statistics_service),
):
    days = service.get_monthly_stats(year, month)
    return MonthlyStatsResponse(
        year=year,
        month=month,
        days={day: DailyStatsResponse.from_stats(stats) for day, stats in days.items()},
    )


@router.post("/touches", response_model=TouchEventResponse, status_code=201)
def record_touch(data: TouchCreate, service: StatisticsService = Depends(get_statistics_service)):
    event = service.record_touch(data.duration, data.zone)
    return TouchEventResponse.from_event(event)


@router.post("/meditation", response_model=UserProgressResponse, status_code=201)
def record_meditation(data: MeditationCreate, service: StatisticsService = Depends(get_statistics_service)):
    service.record_meditation(data.minutes)
    return UserProgressResponse.from_progress(service.get_progress())


@router.get("/meditation/recommendation", response_model=MeditationRecommendation)
def get_meditation_recommendation(service: StatisticsService = Depends(get_statistics_service)):
    return MeditationRecommendation(
        should_recommend=service.should_recommend_meditation(),
        today_touch_count=service.get_today_touch_count(),
        threshold=service.get_settings().touch_threshold_for_meditation,
    )


@router.post("/meditation/recommendation")
def mark_meditation_recommended(service: StatisticsService = Depends(get_statistics_service)):
    """Stamp the recommendation time so the cooldown starts now"""
    service.set_meditation_recommended()
    return {"message": "Meditation recommendation recorded"}


@router.get("/settings", response_model=HabitSettingsResponse)
def get_settings(service: StatisticsService = Depends(get_statistics_service)):
    return HabitSettingsResponse.from_settings(service.get_settings())


@router.put("/settings", response_model=HabitSettingsResponse)
def update_settings(data: HabitSettingsUpdate, service: StatisticsService = Depends(get_statistics_service)):
    changes = data.model_dump(exclude_none=True)
    updated = service.update_settings(**changes)
    logger.info("Habit settings updated: %s", sorted(changes))
    return HabitSettingsResponse.from_settings(updated)


@router.get("/progress", response_model=UserProgressResponse)
def get_progress(service: StatisticsService = Depends(get_statistics_service)):
    return UserProgressResponse.from_progress(service.get_progress())


@router.get("/export", response_model=ExportDocument)
def export_data(service: StatisticsService = Depends(get_statistics_service)):
    return service.export_data()


@router.post("/import", response_model=ImportResult)
def import_data(
    document: Any = Body(...),
    service: StatisticsService = Depends(get_statistics_service),
):
    if not service.import_data(document):
        raise HTTPException(400, "Invalid export data format")
    return ImportResult(imported=True, daily_stats_count=len(service.export_data()["dailyStats"]))


@router.delete("")
def clear_all_data(service: StatisticsService = Depends(get_statistics_service)):
    service.clear_all_data()
    return {"message": "All statistics cleared"}
