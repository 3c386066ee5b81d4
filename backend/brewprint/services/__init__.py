# Services package init
"""
Brewprint Backend — Services Layer
===================================

What:  Business logic layer sitting between routes (HTTP) and the RecordStore.
How:   Services are stateless singletons; the store is passed into each call,
       which lets tests hand them an in-memory store.

Service Inventory:
    - RecordStore (abstract) / SqlAlchemyRecordStore: persistence boundary
    - VersionGraph: version labels, branch drafts, experimentation chains
    - ResultRecorder: brew observations and lifecycle status
    - RecipeService: owner-scoped recipe operations for the routes
    - SnapshotBuilder / SnapshotRestorer: backup export and import
    - DefaultsService: default grinder / water profile / folder selection
    - MembershipService: recipes in folders, tags on recipes
    - BackupFileService: backup files on disk
    - CsvExporter: recipe and bean CSV exports
    - BackupService: statistics and full data reset
"""
