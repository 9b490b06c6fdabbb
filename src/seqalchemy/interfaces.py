import abc

from seqalchemy.keys import ModelDescriptor


class ISchemaIntrospector(metaclass=abc.ABCMeta):
    """Structural view of the models whose tables may need emulated identities."""

    @abc.abstractmethod
    def list_models(self):
        raise NotImplementedError

    @abc.abstractmethod
    def table_name(self, model):
        raise NotImplementedError

    @abc.abstractmethod
    def primary_key_columns(self, model):
        raise NotImplementedError

    @abc.abstractmethod
    def all_columns(self, model):
        raise NotImplementedError

    @abc.abstractmethod
    def foreign_key_columns(self, model):
        raise NotImplementedError

    @abc.abstractmethod
    def is_identity_column(self, model, column_name):
        raise NotImplementedError

    def schema_name(self, model):
        """Schema the model's table lives in; None for the default schema."""
        return None

    def describe(self, model) -> ModelDescriptor:
        """Collect every structural fact about one model."""
        columns = tuple(self.all_columns(model))
        return ModelDescriptor(
            model=model,
            table_name=self.table_name(model),
            schema=self.schema_name(model),
            primary_key=tuple(self.primary_key_columns(model)),
            columns=columns,
            foreign_keys=frozenset(self.foreign_key_columns(model)),
            identity_columns=frozenset(
                c for c in columns if self.is_identity_column(model, c)
            ),
        )
