"""
homematch_pipeline.pipelines — End-to-end pipeline orchestrators.

Each pipeline module exports a run() async function returning a summary.

    from homematch_pipeline.pipelines import listings

    summary = await listings.run(["Berkeley, CA"], max_pages=1)
"""
