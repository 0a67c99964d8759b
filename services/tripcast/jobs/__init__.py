"""
Trip pipeline jobs.

Each trip runs as two independently scheduled units of work:

    forecast_fetch           -- stage 1: resolve/refresh/link forecasts, then
                               schedule stage 2
    recommendation_analysis  -- stage 2: clothing rules -> 5 recommendations,
                               trip -> ready

Inside the API process they are scheduled through InProcessJobRunner. For
manual re-invocation (both stages are idempotent):

    python -m services.tripcast.jobs.forecast_fetch <trip_id>
    python -m services.tripcast.jobs.recommendation_analysis <trip_id>
"""
