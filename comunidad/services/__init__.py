# Services package.
#
# Generic layer:
#
#   result / errors  - ServiceResult envelope and the VALIDATION_ERROR / DB_ERROR taxonomy
#   base             - BaseService: CRUD, search, soft delete over one table
#   cacheable        - CacheableService: read-through entity cache + junction resolver
#   relations        - junction discovery and RelationshipService (link management)
#   query, deletion  - shared statement helpers and the soft-delete state
#   validators       - URL / email / required-field checks for the hooks
#
# Entity services (one per table):
#
#   organizaciones_service, proyectos_service, temas_service,
#   personas_service, noticias_service
#
# Services take an AsyncSession (and a cache adapter) at construction and
# never commit, so the router layer controls the transaction boundary via
# the ``get_db`` dependency.
