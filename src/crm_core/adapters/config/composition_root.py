from dependency_injector import containers, providers

container = None


def setup_di_container_from_settings(settings):  # noqa: PLR0915
    """Inicializa o DI container após o Django já estar com settings carregados."""
    global container  # noqa: PLW0603
    if container is not None:
        import structlog
        structlog.get_logger(__name__).debug("di_container_already_initialized")
        return container

    # ------- IMPORTS DE INFRA E ADAPTERS -------
    import structlog

    from crm_core.adapters.context.request_context import current_client_info

    # Repositórios concretos (Django ORM)
    from crm_core.adapters.repositories.activity_log_repo_impl import ActivityLogRepoImpl
    from crm_core.adapters.repositories.client_repo_impl import ClientRepoImpl
    from crm_core.adapters.repositories.contact_repo_impl import ContactRepoImpl
    from crm_core.adapters.repositories.deal_repo_impl import DealRepoImpl
    from crm_core.adapters.repositories.task_repo_impl import TaskRepoImpl

    # Commands
    from crm_core.core.application.commands.contact_commands import (
        CreateContactCommand,
        DeleteContactCommand,
        UpdateContactCommand,
    )
    from crm_core.core.application.commands.deal_commands import (
        CloseDealCommand,
        CreateDealCommand,
        DeleteDealCommand,
        UpdateDealCommand,
    )
    from crm_core.core.application.commands.task_commands import (
        CreateTaskCommand,
        DeleteTaskCommand,
        UpdateTaskCommand,
    )

    # CQRS
    from crm_core.core.application.cqrs import CommandBusImpl, QueryBusImpl

    # Handlers
    from crm_core.core.application.handlers.contact_handlers import (
        CreateContactHandler,
        DeleteContactHandler,
        ListContactsHandler,
        UpdateContactHandler,
    )
    from crm_core.core.application.handlers.deal_handlers import (
        CloseDealHandler,
        CreateDealHandler,
        DeleteDealHandler,
        GetDealHandler,
        ListDealsHandler,
        UpdateDealHandler,
    )
    from crm_core.core.application.handlers.task_handlers import (
        CreateTaskHandler,
        DeleteTaskHandler,
        GetTaskHandler,
        ListTasksHandler,
        UpdateTaskHandler,
    )

    # Queries
    from crm_core.core.application.queries.contact_queries import ListContactsQuery
    from crm_core.core.application.queries.deal_queries import GetDealQuery, ListDealsQuery
    from crm_core.core.application.queries.task_queries import GetTaskQuery, ListTasksQuery

    # Serviços
    from crm_core.core.application.services.activity_logger import ActivityLogger
    from crm_core.core.domain.services.access_policy import ClientAccessPolicy
    from crm_core.core.domain.services.deal_pipeline_service import DealPipelineService

    # ------- DECLARAÇÃO DO CONTAINER -------
    class Container(containers.DeclarativeContainer):
        config = providers.Configuration()

        # CQRS
        command_bus = providers.Singleton(CommandBusImpl)
        query_bus = providers.Singleton(QueryBusImpl)

        # Implementações de Repositórios (Ports → Adapters)
        deal_repo = providers.Singleton(DealRepoImpl)
        task_repo = providers.Singleton(TaskRepoImpl)
        contact_repo = providers.Singleton(ContactRepoImpl)
        client_repo = providers.Singleton(ClientRepoImpl)
        activity_log_repo = providers.Singleton(ActivityLogRepoImpl)

        # Serviços de domínio / aplicação
        pipeline_service = providers.Singleton(DealPipelineService)
        access_policy = providers.Singleton(ClientAccessPolicy, client_repo=client_repo)
        activity_logger = providers.Singleton(
            ActivityLogger,
            repo=activity_log_repo,
            client_info=providers.Object(current_client_info),
        )

        # Handlers de Deals
        create_deal_handler = providers.Factory(
            CreateDealHandler,
            repo=deal_repo,
            access=access_policy,
            activity=activity_logger,
            default_currency=config.default_currency,
        )
        update_deal_handler = providers.Factory(
            UpdateDealHandler,
            repo=deal_repo,
            access=access_policy,
            activity=activity_logger,
            pipeline=pipeline_service,
        )
        close_deal_handler = providers.Factory(
            CloseDealHandler,
            repo=deal_repo,
            access=access_policy,
            activity=activity_logger,
            pipeline=pipeline_service,
        )
        delete_deal_handler = providers.Factory(
            DeleteDealHandler, repo=deal_repo, access=access_policy, activity=activity_logger
        )
        get_deal_handler = providers.Factory(
            GetDealHandler, repo=deal_repo, access=access_policy, activity=activity_logger
        )
        list_deals_handler = providers.Factory(
            ListDealsHandler, repo=deal_repo, max_page_size=config.max_page_size
        )

        # Handlers de Tarefas
        create_task_handler = providers.Factory(
            CreateTaskHandler, repo=task_repo, access=access_policy, activity=activity_logger
        )
        update_task_handler = providers.Factory(
            UpdateTaskHandler, repo=task_repo, access=access_policy, activity=activity_logger
        )
        delete_task_handler = providers.Factory(
            DeleteTaskHandler, repo=task_repo, access=access_policy, activity=activity_logger
        )
        get_task_handler = providers.Factory(
            GetTaskHandler, repo=task_repo, access=access_policy, activity=activity_logger
        )
        list_tasks_handler = providers.Factory(
            ListTasksHandler, repo=task_repo, max_page_size=config.max_page_size
        )

        # Handlers de Contatos
        create_contact_handler = providers.Factory(
            CreateContactHandler, repo=contact_repo, access=access_policy, activity=activity_logger
        )
        update_contact_handler = providers.Factory(
            UpdateContactHandler, repo=contact_repo, access=access_policy, activity=activity_logger
        )
        delete_contact_handler = providers.Factory(
            DeleteContactHandler, repo=contact_repo, access=access_policy, activity=activity_logger
        )
        list_contacts_handler = providers.Factory(
            ListContactsHandler, repo=contact_repo, max_page_size=config.max_page_size
        )

        def init(self):
            # Registrar comandos no CommandBus
            bus = self.command_bus()

            # Deals
            bus.register(CreateDealCommand, self.create_deal_handler())
            bus.register(UpdateDealCommand, self.update_deal_handler())
            bus.register(CloseDealCommand, self.close_deal_handler())
            bus.register(DeleteDealCommand, self.delete_deal_handler())

            # Tarefas
            bus.register(CreateTaskCommand, self.create_task_handler())
            bus.register(UpdateTaskCommand, self.update_task_handler())
            bus.register(DeleteTaskCommand, self.delete_task_handler())

            # Contatos
            bus.register(CreateContactCommand, self.create_contact_handler())
            bus.register(UpdateContactCommand, self.update_contact_handler())
            bus.register(DeleteContactCommand, self.delete_contact_handler())

            # Registrar queries no QueryBus
            qb = self.query_bus()
            qb.register(GetDealQuery, self.get_deal_handler())
            qb.register(ListDealsQuery, self.list_deals_handler())
            qb.register(GetTaskQuery, self.get_task_handler())
            qb.register(ListTasksQuery, self.list_tasks_handler())
            qb.register(ListContactsQuery, self.list_contacts_handler())

    # ------- INSTANCIAÇÃO E CONFIG -------
    container = Container()
    container.config.default_currency.from_value(getattr(settings, "DEFAULT_DEAL_CURRENCY", "PLN"))
    container.config.max_page_size.from_value(getattr(settings, "MAX_PAGE_SIZE", 200))

    # Inicializa os buses com todos os handlers
    Container.init(container)
    structlog.get_logger(__name__).info("di_container_initialized")
    return container
